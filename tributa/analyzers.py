import logging
from typing import Dict, Any, List, Optional

from .errors import TributaError, CalculationFault, ValidationFailed
from .models import (
    AnalysisResult, CompanyInputs, Exclusion, PartnerConfig, PersonalImpactResult, RegimeKind, RegimeResult,
    Severity,
)
from .params import get_params
from .personal import calculate_personal_impact
from .projection import project
from .ranking import rank
from .regional import regional_rates
from .rules import Classification, resolve_rules
from .scenarios import simulate_scenarios
from .tax.base import alert
from .tax.regimes import ENGINES, evaluate_regime
from .validation import blocking, validate

logger = logging.getLogger(__name__)


def _personal(result: RegimeResult, inputs: CompanyInputs, partners: List[PartnerConfig],
              params: Dict[str, Any]) -> PersonalImpactResult:
    try:
        return calculate_personal_impact(result, inputs, partners, params)
    except TributaError:
        raise
    except Exception as e:
        logger.exception("personal impact failed for %s", result.regime.value)
        raise CalculationFault(f"Falha no impacto pessoal do {result.label}: {e}", regime=result.regime.value) from e


def analyze_company(
    inputs: CompanyInputs,
    partners: List[PartnerConfig],
    *,
    params: Optional[Dict[str, Any]] = None,
    classification: Optional[Classification] = None,
    regional_data: Optional[Dict[str, Any]] = None,
) -> AnalysisResult:
    """
    Full run: resolve rules, validate, compute the three regimes and each
    regime's personal impact, rank, then simulate distributions and project
    growth for the winner.

    Raises ValidationFailed when a blocking alert is found and CalculationFault
    when any regime faults; no partial ranking is ever returned.
    """
    params = params if params is not None else get_params()
    rules = resolve_rules(inputs.activity_code, inputs.category, classification=classification)
    regional = regional_rates(inputs.state, data=regional_data)

    alerts = validate(inputs, partners, regional=regional, params=params)
    errors = blocking(alerts)
    if errors:
        logger.info("analysis blocked by validation: %s", [a.code for a in errors])
        raise ValidationFailed(errors)

    if rules.estimated:
        alerts.append(alert(
            Severity.INFO, "RULES_ESTIMATED",
            f"CNAE {rules.activity_code or '(vazio)'} não mapeado: regras estimadas ({rules.note}).",
        ))
    if regional.estimated:
        alerts.append(alert(
            Severity.INFO, "STATE_ESTIMATED",
            f"UF {inputs.state!r} não encontrada: alíquotas estaduais padrão aplicadas.",
        ))

    results: List[Optional[RegimeResult]] = []
    exclusions: List[Exclusion] = []
    for kind in RegimeKind:
        result, reason = evaluate_regime(kind, inputs, rules, regional, params)
        if result is None:
            exclusions.append(Exclusion(regime=kind, label=ENGINES[kind].label, reason=reason or ""))
        results.append(result)

    personal = [_personal(r, inputs, partners, params) if r is not None else None for r in results]
    ranking = rank(results, personal)

    recommended = ranking[0].regime.regime if ranking else None
    scenarios = []
    projection = None
    if ranking:
        winner = ranking[0]
        scenarios = simulate_scenarios(
            winner.personal.available_profit, partners, winner.personal.payout_fraction, params=params,
        )
        projection = project(inputs, regional, winner.regime, params=params)

    logger.info(
        "analysis for %s/%s: recommended=%s, excluded=%s",
        rules.activity_code or "-", regional.state,
        recommended.value if recommended else None, [e.regime.value for e in exclusions],
    )
    return AnalysisResult(
        rules=rules,
        regional=regional,
        validation=alerts,
        ranking=ranking,
        exclusions=exclusions,
        recommended=recommended,
        scenarios=scenarios,
        projection=projection,
    )
