import os
import logging
from functools import lru_cache
from typing import Dict, Any, List

from .models import RegionalRates
from .params import CONFIG_DIR, load_params

logger = logging.getLogger(__name__)

DEFAULT_REGIONAL_PATH = CONFIG_DIR / "regional_br.yaml"


@lru_cache(maxsize=None)
def _cached_regional(path: str) -> Dict[str, Any]:
    return load_params(path)


def load_regional(path: str | None = None) -> Dict[str, Any]:
    path = path or os.getenv("TRIBUTA_REGIONAL_PATH") or str(DEFAULT_REGIONAL_PATH)
    return _cached_regional(path)


def _record(state: str, raw: Dict[str, Any], defaults: Dict[str, Any], estimated: bool) -> RegionalRates:
    return RegionalRates(
        state=state,
        name=raw.get("name", state),
        icms_rate=float(raw.get("icms", 0.18)),
        reduced_rate=float(raw.get("reduced_rate", defaults.get("reduced_rate", 0.07))),
        subceiling=float(raw.get("subceiling", defaults.get("subceiling", 3_600_000))),
        sudam=bool(raw.get("sudam", False)),
        sudene=bool(raw.get("sudene", False)),
        partial_incentive=bool(raw.get("partial", False)),
        estimated=estimated,
    )


def regional_rates(state: str | None, *, data: Dict[str, Any] | None = None) -> RegionalRates:
    """Rates for a federative unit; unknown states get the national fallback flagged as estimated."""
    data = data or load_regional()
    uf = (state or "").strip().upper()
    defaults = data.get("defaults") or {}
    raw = (data.get("states") or {}).get(uf)
    if raw is not None:
        return _record(uf, raw, defaults, estimated=False)

    logger.warning("state %r not found in regional table, using fallback rates", state)
    return _record(uf, data.get("fallback") or {}, defaults, estimated=True)


def list_states(data: Dict[str, Any] | None = None) -> List[str]:
    data = data or load_regional()
    return sorted((data.get("states") or {}).keys())
