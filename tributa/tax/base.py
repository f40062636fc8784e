from typing import Dict, Any, List, Optional, Tuple

from ..models import (
    Alert, CompanyInputs, RegimeKind, RegimeResult, RegimeRules, RegionalRates, Severity, TaxComponents,
)

Evaluation = Tuple[Optional[RegimeResult], Optional[str]]


class TaxEngine:
    regime: RegimeKind
    label: str

    def evaluate(
        self,
        *,
        inputs: CompanyInputs,
        rules: RegimeRules,
        regional: RegionalRates,
        params: Dict[str, Any],
    ) -> Evaluation:
        """Return (result, None) or (None, reason) when the company cannot opt for this regime."""
        raise NotImplementedError

    def build_result(
        self,
        *,
        inputs: CompanyInputs,
        components: Dict[str, float],
        outside: Dict[str, float] | None = None,
        metadata: Dict[str, Any],
        alerts: List[Alert],
    ) -> RegimeResult:
        inside = TaxComponents(**components)
        pushed = TaxComponents(**(outside or {}))
        total = inside.total() + pushed.total()
        return RegimeResult(
            regime=self.regime,
            label=self.label,
            components=inside,
            outside=pushed,
            total_liability=total,
            effective_rate=total / inputs.revenue if inputs.revenue > 0 else 0.0,
            metadata=metadata,
            alerts=alerts,
        )


def alert(severity: Severity, code: str, message: str) -> Alert:
    return Alert(severity=severity, code=code, message=message)


def brl(value: float) -> str:
    """Format as Brazilian currency: R$ 1.234,56."""
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


def pct(value: float) -> str:
    return f"{value * 100:.1f}%".replace(".", ",")


def consumption_tax(inputs: CompanyInputs, regional: RegionalRates) -> Dict[str, float]:
    """ICMS or ISS charged on gross monthly revenue, depending on the activity category."""
    if inputs.category.is_service:
        return {"icms": 0.0, "iss": inputs.revenue * inputs.service_tax_rate}
    rate = regional.reduced_rate if inputs.reduced_basket else regional.icms_rate
    return {"icms": inputs.revenue * rate, "iss": 0.0}
