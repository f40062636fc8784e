from typing import Dict, List, Optional, Sequence

from .errors import CalculationFault
from .models import PersonalImpactResult, RankedRegime, RegimeKind, RegimeResult


def rank(
    regime_results: Sequence[Optional[RegimeResult]],
    personal_results: Sequence[Optional[PersonalImpactResult]],
) -> List[RankedRegime]:
    """
    Order regimes by the partners' aggregate net cash (highest first), ties
    broken by the lowest total liability.

    Personal results are matched to regime results by regime kind, not by
    position. A missing regime (ineligible) is skipped; the caller reports it as
    an exclusion. A regime result without a personal result raises
    CalculationFault.
    """
    personal_by_kind: Dict[RegimeKind, PersonalImpactResult] = {
        p.regime: p for p in personal_results if p is not None
    }
    pairs = []
    for r in regime_results:
        if r is None:
            continue
        p = personal_by_kind.get(r.regime)
        if p is None:
            raise CalculationFault(f"Impacto pessoal ausente para o {r.label}", regime=r.regime.value)
        pairs.append((r, p))

    # sorted() é estável: empates completos mantêm a ordem de entrada
    pairs = sorted(pairs, key=lambda rp: (-rp[1].aggregate_net_cash, rp[0].total_liability))
    return [RankedRegime(rank=i + 1, regime=r, personal=p) for i, (r, p) in enumerate(pairs)]
