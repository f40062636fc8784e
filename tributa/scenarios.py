import logging
from typing import Dict, Any, List, Optional

from .models import PartnerConfig, Scenario, ScenarioAllocation
from .params import get_params

logger = logging.getLogger(__name__)


def _allocation(partner: PartnerConfig, gross: float, threshold: float, rate: float, retained: float = 0.0) -> ScenarioAllocation:
    taxable = max(0.0, gross - threshold)
    withheld = taxable * rate
    return ScenarioAllocation(
        name=partner.name,
        participation=partner.participation,
        gross=gross,
        exempt=min(gross, threshold),
        taxable=taxable,
        withheld=withheld,
        net=gross - withheld,
        retained=retained,
    )


def _scenario(key: str, name: str, description: str, allocations: List[ScenarioAllocation]) -> Scenario:
    return Scenario(
        key=key,
        name=name,
        description=description,
        allocations=allocations,
        total_withheld=sum(a.withheld for a in allocations),
        total_net=sum(a.net for a in allocations),
        total_retained=sum(a.retained for a in allocations),
    )


def simulate_scenarios(
    available_profit: float,
    partners: List[PartnerConfig],
    payout_fraction: float,
    *,
    params: Optional[Dict[str, Any]] = None,
    exemption_threshold: Optional[float] = None,
) -> List[Scenario]:
    """
    Alternative dividend distributions for the same distributable profit.

    - proportional: each partner gets their equity share (always offered)
    - equal: same amount for everyone (only with more than one partner)
    - max_exemption: each partner capped at the monthly exemption, the rest
      retained in the company; offered only when every proportional share
      is above the exemption
    """
    params = params if params is not None else get_params()
    div_cfg = params["personal"]["dividends"]
    threshold = div_cfg["monthly_exemption"] if exemption_threshold is None else exemption_threshold
    rate = div_cfg["withholding_rate"]

    distributed = max(0.0, available_profit * payout_fraction)
    shares = [distributed * p.participation / 100 for p in partners]
    scenarios = []

    scenarios.append(_scenario(
        "proportional",
        "Proporcional (Contrato Social)",
        "Cada sócio recebe conforme sua participação no capital",
        [_allocation(p, s, threshold, rate) for p, s in zip(partners, shares)],
    ))

    if len(partners) > 1:
        equal = distributed / len(partners)
        scenarios.append(_scenario(
            "equal",
            "Distribuição Igual",
            "Cada sócio recebe o mesmo valor",
            [_allocation(p, equal, threshold, rate) for p in partners],
        ))

    if partners and all(s > threshold for s in shares):
        scenarios.append(_scenario(
            "max_exemption",
            "Otimizado (Máximo Isento)",
            "Cada sócio recebe até o limite isento; o excedente fica retido na empresa",
            [_allocation(p, min(threshold, s), threshold, rate, retained=s - min(threshold, s))
             for p, s in zip(partners, shares)],
        ))

    logger.debug("simulated %d distribution scenarios over %.2f", len(scenarios), distributed)
    return scenarios


def best_scenario(scenarios: List[Scenario]) -> Optional[Scenario]:
    """Scenario with the lowest aggregate withholding; the first one wins ties."""
    if not scenarios:
        return None
    return min(scenarios, key=lambda s: s.total_withheld)
