import logging
from typing import Dict, Any

from .base import TaxEngine, Evaluation, alert, brl, pct, consumption_tax
from ..models import CompanyInputs, RegimeKind, RegimeRules, RegionalRates, Severity

logger = logging.getLogger(__name__)


def loss_offset(annual_profit: float, balance: float, cap: float) -> float:
    """Offset of accumulated losses, limited to a share of the positive profit."""
    positive = max(annual_profit, 0.0)
    return min(positive * cap, balance, positive)


class RealEngine(TaxEngine):
    regime = RegimeKind.REAL
    label = "Lucro Real"

    def evaluate(self, *, inputs: CompanyInputs, rules: RegimeRules, regional: RegionalRates,
                 params: Dict[str, Any]) -> Evaluation:
        p = params["real"]
        lp = params["presumido"]
        incentive = params.get("incentive", {})
        patronal = params["simples"].get("patronal_rate", 0.288)
        cap = p.get("loss_offset_cap", 0.30)

        annual_profit = inputs.revenue * inputs.declared_margin * 12

        # compensação de prejuízo fiscal (trava de 30%)
        irpj_offset = loss_offset(annual_profit, inputs.tax_loss_carryforward, cap)
        taxable_annual = max(annual_profit - irpj_offset, 0.0)
        taxable_monthly = taxable_annual / 12

        irpj_normal = taxable_monthly * lp.get("irpj_rate", 0.15)
        surtax = max(0.0, taxable_monthly - lp.get("surtax_monthly_threshold", 20_000)) * lp.get("surtax_rate", 0.10)
        irpj_gross = irpj_normal + surtax
        discount = irpj_gross * incentive.get("irpj_reduction", 0.75) if inputs.regional_incentive else 0.0

        # base negativa de CSLL (mesma trava)
        csll_offset = loss_offset(annual_profit, inputs.negative_csll_base, cap)
        csll_annual = max(annual_profit - csll_offset, 0.0)
        csll = csll_annual / 12 * lp.get("csll_rate", 0.09)

        # PIS/COFINS não cumulativos
        explicit_credit = inputs.credit_base_override > 0
        credit_base = (
            inputs.credit_base_override if explicit_credit
            else inputs.cost_of_goods + inputs.operating_expenses * p.get("credit_expense_share", 0.60)
        )
        pis_rate = p.get("pis_rate", 0.0165)
        cofins_rate = p.get("cofins_rate", 0.076)
        pis = max(0.0, inputs.revenue * pis_rate - credit_base * pis_rate)
        cofins = max(0.0, inputs.revenue * cofins_rate - credit_base * cofins_rate)

        components = {
            "irpj": irpj_gross - discount,
            "csll": csll,
            "pis": pis,
            "cofins": cofins,
            "cpp": inputs.payroll * patronal,
            **consumption_tax(inputs, regional),
        }

        alerts = []
        mandatory = inputs.annual_revenue > lp.get("ceiling", 78_000_000)
        if mandatory:
            alerts.append(alert(
                Severity.WARN, "REAL_MANDATORY",
                f"Lucro Real obrigatório: faturamento anual acima de {brl(lp.get('ceiling', 78_000_000))}.",
            ))
        if inputs.declared_margin < 0:
            alerts.append(alert(
                Severity.WARN, "NEGATIVE_MARGIN",
                "Empresa operando no prejuízo. No Lucro Real o IRPJ/CSLL é zero e o prejuízo fica acumulado "
                "para compensação futura.",
            ))
        if inputs.regional_incentive:
            alerts.append(alert(
                Severity.INFO, "INCENTIVE_APPLIED",
                f"Incentivo regional: {pct(incentive.get('irpj_reduction', 0.75))} de desconto no IRPJ aplicado.",
            ))
        if irpj_offset > 0:
            alerts.append(alert(
                Severity.INFO, "LOSS_OFFSET",
                f"Compensação de prejuízo: {brl(irpj_offset)} deduzido do lucro tributável anual (limite {pct(cap)}).",
            ))
        if not explicit_credit:
            alerts.append(alert(
                Severity.INFO, "ESTIMATED_CREDITS",
                f"Créditos PIS/COFINS estimados: {brl(credit_base * (pis_rate + cofins_rate))}/mês "
                "(CMV + 60% das despesas operacionais).",
            ))

        metadata = {
            "annual_profit": annual_profit,
            "loss_offset": irpj_offset,
            "remaining_loss": max(0.0, inputs.tax_loss_carryforward - irpj_offset),
            "csll_offset": csll_offset,
            "remaining_negative_csll_base": max(0.0, inputs.negative_csll_base - csll_offset),
            "taxable_monthly": taxable_monthly,
            "irpj_normal": irpj_normal,
            "surtax": surtax,
            "incentive_discount": discount,
            "credit_base": credit_base,
            "credits": credit_base * (pis_rate + cofins_rate),
            "explicit_credit_base": explicit_credit,
            "mandatory": mandatory,
        }
        result = self.build_result(inputs=inputs, components=components, metadata=metadata, alerts=alerts)
        logger.debug("real: taxable_monthly=%.2f total=%.2f", taxable_monthly, result.total_liability)
        return result, None
