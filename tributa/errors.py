from typing import List, Optional


class TributaError(Exception):
    """Base class for every error raised by the engine."""


class ValidationFailed(TributaError):
    """Blocking validation alerts were found; no regime was computed."""

    def __init__(self, alerts: List, message: Optional[str] = None):
        self.alerts = list(alerts)
        if message is None:
            codes = ", ".join(a.code for a in self.alerts)
            message = f"Dados inconsistentes: {codes}"
        super().__init__(message)


class CalculationFault(TributaError):
    """Unexpected internal fault; the whole calculation run is aborted."""

    def __init__(self, message: str, regime: Optional[str] = None):
        self.regime = regime
        super().__init__(message)


class UnknownBracketFamily(CalculationFault):
    def __init__(self, family: str):
        self.family = family
        super().__init__(f"Anexo desconhecido na tabela de classificação: {family!r}")
