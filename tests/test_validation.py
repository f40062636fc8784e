import pytest

from tributa.models import CompanyInputs, PartnerConfig, Severity
from tributa.regional import regional_rates
from tributa.validation import blocking, equalize, validate


def codes(alerts):
    return {a.code for a in alerts}


def test_clean_inputs(params, software_company, single_partner, sp):
    alerts = validate(software_company, single_partner, regional=sp, params=params)
    assert blocking(alerts) == []
    assert "PARTICIPATION_SUM" not in codes(alerts)


def test_no_partners(params, software_company):
    alerts = validate(software_company, [], params=params)
    assert "NO_PARTNERS" in codes(blocking(alerts))


@pytest.mark.parametrize("shares", [(99.9,), (50, 50.5), (60, 40)])
def test_participation_within_tolerance(params, software_company, shares):
    partners = [PartnerConfig(name=f"S{i}", participation=s, withdrawal=1_000) for i, s in enumerate(shares)]
    assert "PARTICIPATION_SUM" not in codes(validate(software_company, partners, params=params))


@pytest.mark.parametrize("shares", [(90,), (60, 50)])
def test_participation_out_of_tolerance(params, software_company, shares):
    partners = [PartnerConfig(name=f"S{i}", participation=s, withdrawal=1_000) for i, s in enumerate(shares)]
    errors = blocking(validate(software_company, partners, params=params))
    assert "PARTICIPATION_SUM" in codes(errors)


def test_withdrawal_exceeds_revenue(params):
    inputs = CompanyInputs(revenue=10_000, payroll=20_000)
    partners = [PartnerConfig(name="Ana", participation=100, withdrawal=20_000)]
    assert "WITHDRAWAL_EXCEEDS_REVENUE" in codes(blocking(validate(inputs, partners, params=params)))


def test_warnings(params):
    inputs = CompanyInputs(revenue=10_000, payroll=8_000, cost_of_goods=5_000, service_tax_rate=0.01)
    partners = [
        PartnerConfig(name="Ana", participation=50, withdrawal=3_000),
        PartnerConfig(name="Bruno", participation=50),
    ]
    alerts = validate(inputs, partners, params=params)
    assert blocking(alerts) == []
    assert {"OPERATING_LOSS", "MISSING_WITHDRAWAL", "UNEXPLAINED_PAYROLL", "SERVICE_TAX_RANGE"} <= codes(alerts)
    assert all(a.severity is Severity.WARN for a in alerts)


def test_payroll_below_withdrawals(params):
    inputs = CompanyInputs(revenue=50_000, payroll=2_000)
    partners = [PartnerConfig(name="Ana", participation=100, withdrawal=5_000)]
    assert "PAYROLL_BELOW_WITHDRAWALS" in codes(validate(inputs, partners, params=params))


def test_revenue_thresholds(params, single_partner):
    sub = CompanyInputs(revenue=320_000, payroll=100_000)
    assert "SUBCEILING_EXCEEDED" in codes(validate(sub, single_partner, regional=regional_rates("SP"), params=params))

    over = CompanyInputs(revenue=450_000, payroll=100_000)
    found = codes(validate(over, single_partner, params=params))
    assert "SIMPLES_CEILING_EXCEEDED" in found
    assert "SUBCEILING_EXCEEDED" not in found


def test_incentive_outside_covered_area(params, single_partner):
    inputs = CompanyInputs(revenue=50_000, payroll=15_000, regional_incentive=True)
    assert "INCENTIVE_NOT_AVAILABLE" in codes(validate(inputs, single_partner, regional=regional_rates("SP"),
                                                       params=params))
    assert "INCENTIVE_NOT_AVAILABLE" not in codes(validate(inputs, single_partner, regional=regional_rates("PE"),
                                                           params=params))


def test_informational(params, single_partner):
    inputs = CompanyInputs(revenue=0, interstate_sales=True)
    alerts = validate(inputs, [PartnerConfig(name="Ana", participation=100)], params=params)
    info = {a.code for a in alerts if a.severity is Severity.INFO}
    assert info == {"INTERSTATE_SALES", "ZERO_REVENUE"}


def test_equalize():
    partners = [PartnerConfig(name=n, participation=p) for n, p in [("A", 50), ("B", 30), ("C", 20)]]
    out = equalize(partners)
    assert [p.participation for p in out] == [33.33, 33.33, 33.34]
    assert sum(p.participation for p in out) == pytest.approx(100)
    assert [p.name for p in out] == ["A", "B", "C"]
    assert partners[0].participation == 50
    assert equalize([]) == []
