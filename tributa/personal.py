"""
Per-partner take-home figures for one regime: pro-labore withdrawal taxed as
labor income, dividends taxed above the monthly exemption and the IRPFM
minimum-tax backstop.
"""
import logging
from typing import Dict, Any, List, Optional

from .models import (
    CompanyInputs, DividendBreakdown, PartnerConfig, PartnerPersonalResult, PersonalImpactResult,
    RegimeResult, WithdrawalBreakdown,
)
from .params import get_params, payout_fraction

logger = logging.getLogger(__name__)


def monthly_income_tax(base: float, table: List[list]) -> float:
    """Progressive monthly IRPF: first row whose upper bound covers the base (None = open)."""
    for upper, rate, deduction in table:
        if upper is None or base <= upper:
            return max(0.0, base * rate - deduction)
    return 0.0


def withdrawal_relief(withdrawal: float, gross_tax: float, relief: Dict[str, Any]) -> float:
    # redutor da Lei 15.270/2025
    if withdrawal <= relief["full_until"]:
        return min(relief["max_relief"], gross_tax)
    if withdrawal <= relief["transition_until"]:
        value = relief["formula_base"] - relief["formula_coefficient"] * withdrawal
        return max(0.0, min(value, gross_tax))
    return 0.0


def tax_withdrawal(withdrawal: float, personal: Dict[str, Any]) -> WithdrawalBreakdown:
    contribution = min(withdrawal, personal["inss_ceiling"]) * personal["inss_rate"]
    base = max(0.0, withdrawal - contribution)
    gross_tax = monthly_income_tax(base, personal["irpf_monthly"])
    relief = withdrawal_relief(withdrawal, gross_tax, personal["relief"])
    income_tax = max(0.0, gross_tax - relief)
    return WithdrawalBreakdown(
        gross=withdrawal,
        social_contribution=contribution,
        income_tax_gross=gross_tax,
        relief=relief,
        income_tax=income_tax,
        net=withdrawal - contribution - income_tax,
    )


def tax_dividend(gross: float, threshold: float, rate: float) -> DividendBreakdown:
    taxable = max(0.0, gross - threshold)
    withheld = taxable * rate
    return DividendBreakdown(
        gross=gross,
        exempt=min(gross, threshold),
        taxable=taxable,
        withheld=withheld,
        net=gross - withheld,
        above_threshold=gross > threshold,
    )


def minimum_tax_topup(withdrawal: float, dividend: float, already_paid: float, minimum: Dict[str, Any]) -> float:
    """Monthly shortfall against the annual minimum tax; never a rebate."""
    annual = (withdrawal + dividend) * 12
    floor = minimum["annual_floor"]
    if annual <= floor:
        return 0.0
    top = minimum["annual_cap_income"]
    max_rate = minimum["max_rate"]
    if annual >= top:
        rate = max_rate
    else:
        rate = max_rate * (annual - floor) / (top - floor)
    return max(0.0, annual * rate - already_paid * 12) / 12


def available_profit(inputs: CompanyInputs, regime: RegimeResult) -> float:
    """Raw monthly profit left after the regime's taxes and running costs (may be negative)."""
    return (
        inputs.revenue - regime.total_liability - inputs.payroll - inputs.cost_of_goods - inputs.operating_expenses
    )


def partner_result(
    partner: PartnerConfig,
    profit: float,
    fraction: float,
    personal: Dict[str, Any],
) -> PartnerPersonalResult:
    withdrawal = tax_withdrawal(partner.withdrawal, personal)
    gross_dividend = max(0.0, profit * fraction * partner.participation / 100)
    div_cfg = personal["dividends"]
    dividend = tax_dividend(gross_dividend, div_cfg["monthly_exemption"], div_cfg["withholding_rate"])
    topup = minimum_tax_topup(
        partner.withdrawal, gross_dividend, withdrawal.income_tax + dividend.withheld, personal["minimum_tax"],
    )
    return PartnerPersonalResult(
        name=partner.name,
        participation=partner.participation,
        withdrawal=withdrawal,
        dividend=dividend,
        minimum_tax_topup=topup,
        net_cash=withdrawal.net + dividend.net - topup,
    )


def calculate_personal_impact(
    regime: RegimeResult,
    inputs: CompanyInputs,
    partners: List[PartnerConfig],
    params: Optional[Dict[str, Any]] = None,
) -> PersonalImpactResult:
    params = params if params is not None else get_params()
    personal = params["personal"]
    raw = available_profit(inputs, regime)
    fraction = payout_fraction(params, inputs.payout_policy)

    results = [partner_result(p, raw, fraction, personal) for p in partners]
    aggregate = sum(r.net_cash for r in results)
    logger.debug("personal impact for %s: aggregate net cash %.2f", regime.regime.value, aggregate)

    return PersonalImpactResult(
        regime=regime.regime,
        available_profit=max(0.0, raw),
        available_profit_raw=raw,
        payout_fraction=fraction,
        partners=results,
        aggregate_net_cash=aggregate,
        tax_burden=regime.total_liability / inputs.revenue if inputs.revenue > 0 else 0.0,
    )
