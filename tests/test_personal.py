import pytest

from tributa.models import CompanyInputs, PartnerConfig, PayoutPolicy, RegimeKind, RegimeResult, TaxComponents
from tributa.personal import (
    calculate_personal_impact, minimum_tax_topup, monthly_income_tax, tax_dividend, tax_withdrawal,
)


def regime(total, kind=RegimeKind.SIMPLES):
    return RegimeResult(
        regime=kind, label=kind.value, components=TaxComponents(irpj=total), total_liability=total,
        effective_rate=0.0,
    )


def test_income_tax_table(params):
    table = params["personal"]["irpf_monthly"]
    assert monthly_income_tax(2_000, table) == 0
    assert monthly_income_tax(4_450, table) == pytest.approx(325.76)
    assert monthly_income_tax(10_000, table) == pytest.approx(1_841.27)


def test_withdrawal_with_full_relief(params):
    w = tax_withdrawal(5_000, params["personal"])
    assert w.social_contribution == pytest.approx(550)
    assert w.income_tax_gross == pytest.approx(325.76)
    assert w.relief == pytest.approx(312.89)
    assert w.income_tax == pytest.approx(12.87)
    assert w.net == pytest.approx(4_437.13)


def test_withdrawal_in_transition_band(params):
    w = tax_withdrawal(6_000, params["personal"])
    assert w.income_tax_gross == pytest.approx(559.77)
    assert w.relief == pytest.approx(179.75)
    assert w.income_tax == pytest.approx(380.02)


def test_withdrawal_contribution_is_capped(params):
    w = tax_withdrawal(10_000, params["personal"])
    assert w.social_contribution == pytest.approx(8_475.55 * 0.11)
    assert w.relief == 0


def test_zero_withdrawal(params):
    w = tax_withdrawal(0, params["personal"])
    assert w.net == 0
    assert w.income_tax == 0


def test_dividend_exemption_boundary():
    at = tax_dividend(50_000, 50_000, 0.10)
    assert at.withheld == 0
    assert not at.above_threshold

    over = tax_dividend(50_001, 50_000, 0.10)
    assert over.withheld == pytest.approx(0.10)
    assert over.taxable == pytest.approx(1)
    assert over.above_threshold


def test_minimum_tax(params):
    cfg = params["personal"]["minimum_tax"]
    assert minimum_tax_topup(0, 50_000, 0, cfg) == 0
    # 1,2 milhão/ano: alíquota cheia de 10%, 60.000 já retidos
    assert minimum_tax_topup(0, 100_000, 5_000, cfg) == pytest.approx(5_000)
    # 900 mil/ano: 5%, 30.000 já retidos
    assert minimum_tax_topup(0, 75_000, 2_500, cfg) == pytest.approx(1_250)
    assert minimum_tax_topup(0, 100_000, 20_000, cfg) == 0


def test_personal_impact_two_partners(params):
    inputs = CompanyInputs(revenue=200_000, payroll=20_000)
    partners = [
        PartnerConfig(name="Ana", participation=70, withdrawal=10_000),
        PartnerConfig(name="Bruno", participation=30, withdrawal=10_000),
    ]
    res = calculate_personal_impact(regime(30_000), inputs, partners, params)
    assert res.available_profit == pytest.approx(150_000)
    assert res.payout_fraction == 1.0
    ana, bruno = res.partners
    assert ana.dividend.gross == pytest.approx(105_000)
    assert ana.dividend.withheld == pytest.approx(5_500)
    assert bruno.dividend.withheld == 0
    assert res.aggregate_net_cash == pytest.approx(ana.net_cash + bruno.net_cash)
    assert res.tax_burden == pytest.approx(0.15)


def test_payout_policy(params):
    inputs = CompanyInputs(revenue=200_000, payroll=20_000, payout_policy=PayoutPolicy.PARTIAL)
    partners = [PartnerConfig(name="Ana", participation=100, withdrawal=10_000)]
    res = calculate_personal_impact(regime(30_000), inputs, partners, params)
    assert res.payout_fraction == 0.5
    assert res.partners[0].dividend.gross == pytest.approx(75_000)

    reinvest = inputs.model_copy(update={"payout_policy": PayoutPolicy.REINVEST})
    res = calculate_personal_impact(regime(30_000), reinvest, partners, params)
    assert res.partners[0].dividend.gross == 0


def test_negative_profit_pays_no_dividend(params):
    inputs = CompanyInputs(revenue=200_000, payroll=20_000)
    partners = [PartnerConfig(name="Ana", participation=100, withdrawal=5_000)]
    res = calculate_personal_impact(regime(250_000), inputs, partners, params)
    assert res.available_profit_raw == pytest.approx(-70_000)
    assert res.available_profit == 0
    assert res.partners[0].dividend.gross == 0
    assert res.partners[0].net_cash == pytest.approx(4_437.13)
