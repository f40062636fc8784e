import pytest

from tributa.models import CompanyInputs, RegimeKind, RegimeResult, TaxComponents
from tributa.projection import project


def test_flat_revenue(params, sp, software_company):
    proj = project(software_company, sp, params=params)
    assert proj.monthly_growth == 0
    assert len(proj.months) == 12
    assert proj.annual_revenue == pytest.approx(600_000)
    assert proj.first_month_above_subceiling is None
    assert proj.first_month_above_ceiling is None
    assert proj.alerts == []
    assert proj.regime is None


def test_growth_crosses_subceiling(params, sp):
    inputs = CompanyInputs(revenue=295_000, growth_rate=0.10)
    proj = project(inputs, sp, params=params)
    assert (1 + proj.monthly_growth) ** 12 == pytest.approx(1.10)
    assert proj.first_month_above_subceiling == 3
    assert proj.first_month_above_ceiling is None
    assert proj.months[-1].revenue == pytest.approx(324_500)
    assert [a.code for a in proj.alerts] == ["PROJECTED_SUBCEILING"]


def test_above_ceiling_from_the_start(params, sp):
    inputs = CompanyInputs(revenue=450_000, growth_rate=0.05)
    proj = project(inputs, sp, params=params, months=6)
    assert len(proj.months) == 6
    assert proj.first_month_above_ceiling == 1
    assert proj.first_month_above_subceiling == 1
    assert [a.code for a in proj.alerts] == ["PROJECTED_CEILING"]


def test_annual_profit_uses_winner(params, sp):
    inputs = CompanyInputs(revenue=50_000, payroll=15_000, operating_expenses=5_000)
    winner = RegimeResult(regime=RegimeKind.SIMPLES, label="Simples Nacional", components=TaxComponents(irpj=5_000),
                          total_liability=5_000, effective_rate=0.1)
    proj = project(inputs, sp, winner, params=params)
    assert proj.regime is RegimeKind.SIMPLES
    assert proj.annual_liability == pytest.approx(60_000)
    assert proj.annual_profit == pytest.approx(600_000 - 60_000 - 240_000)
