import logging
from typing import Dict, Any, Optional

from .models import CompanyInputs, Projection, ProjectionMonth, RegimeResult, RegionalRates, Severity
from .params import get_params
from .tax.base import alert, brl

logger = logging.getLogger(__name__)


def project(
    inputs: CompanyInputs,
    regional: RegionalRates,
    winner: Optional[RegimeResult] = None,
    months: int = 12,
    *,
    params: Optional[Dict[str, Any]] = None,
) -> Projection:
    """Compound the annual growth rate month by month and flag the Simples thresholds."""
    params = params if params is not None else get_params()
    ceiling = params["simples"].get("ceiling", 4_800_000)
    subceiling = regional.subceiling

    growth = (1 + inputs.growth_rate) ** (1 / 12) - 1
    rows = []
    first_ceiling = first_sub = None
    for m in range(1, months + 1):
        revenue = inputs.revenue * (1 + growth) ** m
        annualized = revenue * 12
        above_ceiling = annualized > ceiling
        above_sub = annualized > subceiling
        if above_ceiling and first_ceiling is None:
            first_ceiling = m
        if above_sub and first_sub is None:
            first_sub = m
        rows.append(ProjectionMonth(
            month=m, revenue=revenue, annualized=annualized,
            above_ceiling=above_ceiling, above_subceiling=above_sub,
        ))

    alerts = []
    if first_ceiling is not None:
        alerts.append(alert(
            Severity.WARN, "PROJECTED_CEILING",
            f"Mês {first_ceiling}: receita anualizada excede o teto do Simples ({brl(ceiling)}). Migração obrigatória.",
        ))
    if first_sub is not None and first_sub != first_ceiling:
        alerts.append(alert(
            Severity.WARN, "PROJECTED_SUBCEILING",
            f"Mês {first_sub}: receita anualizada excede o sublimite estadual ({brl(subceiling)}). ICMS/ISS fora do DAS.",
        ))

    annual_revenue = sum(r.revenue for r in rows)
    annual_liability = winner.total_liability * 12 if winner is not None else 0.0
    costs = 12 * (inputs.payroll + inputs.cost_of_goods + inputs.operating_expenses)
    logger.debug("projection: %d months, first above sub-ceiling=%s, ceiling=%s", months, first_sub, first_ceiling)

    return Projection(
        regime=winner.regime if winner is not None else None,
        monthly_growth=growth,
        months=rows,
        first_month_above_ceiling=first_ceiling,
        first_month_above_subceiling=first_sub,
        annual_revenue=annual_revenue,
        annual_liability=annual_liability,
        annual_profit=annual_revenue - annual_liability - costs,
        alerts=alerts,
    )
