import logging
from typing import Dict, Any, Optional

from .base import TaxEngine, Evaluation
from .simples import SimplesEngine
from .presumido import PresumidoEngine
from .real import RealEngine
from ..errors import TributaError, CalculationFault
from ..models import CompanyInputs, RegimeKind, RegimeResult, RegimeRules, RegionalRates
from ..params import get_params

logger = logging.getLogger(__name__)

ENGINES: Dict[RegimeKind, TaxEngine] = {
    RegimeKind.SIMPLES: SimplesEngine(),
    RegimeKind.PRESUMIDO: PresumidoEngine(),
    RegimeKind.REAL: RealEngine(),
}


def evaluate_regime(
    kind: RegimeKind | str,
    inputs: CompanyInputs,
    rules: RegimeRules,
    regional: RegionalRates,
    params: Optional[Dict[str, Any]] = None,
) -> Evaluation:
    """Run one regime calculator. Unexpected errors surface as CalculationFault naming the regime."""
    kind = RegimeKind(kind)
    engine = ENGINES[kind]
    params = params if params is not None else get_params()
    try:
        return engine.evaluate(inputs=inputs, rules=rules, regional=regional, params=params)
    except TributaError:
        raise
    except Exception as e:
        logger.exception("regime %s failed", kind.value)
        raise CalculationFault(f"Falha no cálculo do {engine.label}: {e}", regime=kind.value) from e


def calculate_regime(
    kind: RegimeKind | str,
    inputs: CompanyInputs,
    rules: RegimeRules,
    regional: RegionalRates,
    params: Optional[Dict[str, Any]] = None,
) -> Optional[RegimeResult]:
    result, _ = evaluate_regime(kind, inputs, rules, regional, params)
    return result
