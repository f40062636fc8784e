import os
import re
import logging
from functools import lru_cache
from typing import Dict, Any, List

from .errors import UnknownBracketFamily
from .models import BracketFamily, Category, RegimeRules
from .params import CONFIG_DIR, load_params

logger = logging.getLogger(__name__)

DEFAULT_CLASSIFICATION_PATH = CONFIG_DIR / "classification_br.yaml"

_CNAE_DIGITS = re.compile(r"^\d{7}$")
_SEPARATORS = re.compile(r"[-/.\s]")


class Classification:
    """Activity table loaded from YAML: specific codes, prefix rules, category fallbacks."""

    def __init__(self, raw: Dict[str, Any]):
        self.specific: Dict[str, Dict[str, Any]] = {
            code: _checked(entry, code) for code, entry in (raw.get("specific") or {}).items()
        }
        prefixes: List[Dict[str, Any]] = [
            _checked(entry, entry.get("prefix", "?")) for entry in (raw.get("prefixes") or [])
        ]
        # prefixo mais longo primeiro
        self.prefixes = sorted(prefixes, key=lambda e: (-len(e["prefix"]), e["prefix"]))
        self.categories: Dict[str, Dict[str, Any]] = {
            name: _checked(entry, name) for name, entry in (raw.get("categories") or {}).items()
        }
        self.default = _checked(raw.get("default") or {"family": "III", "irpj": 0.32, "csll": 0.32}, "default")
        self.single_phase: Dict[str, str] = dict(raw.get("single_phase") or {})
        self.category_note = raw.get("category_note", "")
        self.default_note = raw.get("default_note", "")


def _checked(entry: Dict[str, Any], where: str) -> Dict[str, Any]:
    out = dict(entry)
    try:
        out["family"] = BracketFamily(str(entry.get("family")))
    except ValueError:
        logger.error("unknown bracket family %r in classification entry %s", entry.get("family"), where)
        raise UnknownBracketFamily(str(entry.get("family")))
    return out


@lru_cache(maxsize=None)
def _cached_classification(path: str) -> Classification:
    return Classification(load_params(path))


def load_classification(path: str | None = None) -> Classification:
    path = path or os.getenv("TRIBUTA_CLASSIFICATION_PATH") or str(DEFAULT_CLASSIFICATION_PATH)
    return _cached_classification(path)


def normalize_code(activity_code: str | None) -> str:
    """Accepts '6201-5/01' or '6201501' and returns the formatted CNAE code."""
    code = (activity_code or "").strip()
    if _CNAE_DIGITS.match(code):
        return f"{code[:4]}-{code[4]}/{code[5:]}"
    return code


def _as_category(category) -> Category | None:
    if isinstance(category, Category):
        return category
    try:
        return Category((category or "").strip())
    except ValueError:
        return None


def _build(code: str, entry: Dict[str, Any], provenance: str, table: Classification, note: str = "") -> RegimeRules:
    family = entry["family"]
    barred = family is BracketFamily.VEDADO
    group = table.single_phase.get(code)
    return RegimeRules(
        activity_code=code,
        family=family,
        irpj_presumption=float(entry.get("irpj", 0.32)),
        csll_presumption=float(entry.get("csll", 0.32)),
        barred=barred,
        barred_reason=entry.get("barred_reason", "Atividade vedada ao Simples Nacional") if barred else "",
        single_phase=group is not None,
        single_phase_group=group,
        payroll_ratio_sensitive=bool(entry.get("ratio", False)),
        provenance=provenance,
        estimated=provenance in ("category", "default"),
        note=entry.get("note") or note,
    )


def resolve_rules(activity_code: str | None, category=None, *, classification: Classification | None = None) -> RegimeRules:
    """
    Resolve an activity code into regime rules.

    Lookup order: specific code, longest matching prefix, declared category,
    global default. The last two are flagged as estimated.
    """
    table = classification or load_classification()
    code = normalize_code(activity_code)

    entry = table.specific.get(code)
    if entry is not None:
        return _build(code, entry, "specific", table)

    digits = _SEPARATORS.sub("", code)
    if digits:
        for entry in table.prefixes:
            if digits.startswith(entry["prefix"]):
                return _build(code, entry, "prefix", table, note=entry.get("description", ""))

    cat = _as_category(category)
    if cat is not None and cat.value in table.categories:
        logger.warning("activity code %r not classified, falling back to category %s", code, cat.value)
        return _build(code, table.categories[cat.value], "category", table, note=table.category_note)

    logger.warning("activity code %r and category %r not recognised, using default rules", code, category)
    return _build(code, table.default, "default", table, note=table.default_note)

