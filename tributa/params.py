import os
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, List, Tuple

import yaml
from pydantic import BaseModel, ConfigDict

from .errors import CalculationFault, UnknownBracketFamily
from .models import BracketFamily

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent / "config"
DEFAULT_PARAMS_PATH = CONFIG_DIR / "rates_br_2026.yaml"

# ordem das colunas de repartição na tabela de faixas
SPLIT_KEYS = ("irpj", "csll", "cofins", "pis", "cpp", "icms", "iss", "ipi")
SPLIT_TOLERANCE = 0.001


def load_params(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@lru_cache(maxsize=None)
def _cached_params(path: str) -> Dict[str, Any]:
    logger.debug("loading tax parameters from %s", path)
    return load_params(path)


def get_params(path: str | None = None) -> Dict[str, Any]:
    """Federal rate tables; the file location can be overridden with TRIBUTA_PARAMS_PATH."""
    path = path or os.getenv("TRIBUTA_PARAMS_PATH") or str(DEFAULT_PARAMS_PATH)
    return _cached_params(path)


class Bracket(BaseModel):
    model_config = ConfigDict(frozen=True)

    ceiling: float
    rate: float
    deduction: float
    split: Dict[str, float]


class BracketTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    family: BracketFamily
    brackets: List[Bracket]

    def select(self, annual_revenue: float) -> Tuple[int, Bracket]:
        """Smallest bracket whose ceiling covers the revenue; the last one catches the rest."""
        for index, bracket in enumerate(self.brackets):
            if annual_revenue <= bracket.ceiling:
                return index, bracket
        return len(self.brackets) - 1, self.brackets[-1]


def _parse_bracket(family: str, position: int, row: Any) -> Bracket:
    try:
        ceiling, rate, deduction, split = row
        shares = [float(v) for v in split]
    except (TypeError, ValueError) as e:
        raise CalculationFault(f"Anexo {family}, faixa {position}: linha malformada ({e})")
    if len(shares) != len(SPLIT_KEYS):
        raise CalculationFault(
            f"Anexo {family}, faixa {position}: repartição com {len(shares)} colunas (esperado {len(SPLIT_KEYS)})"
        )
    if abs(sum(shares) - 1.0) > SPLIT_TOLERANCE:
        raise CalculationFault(
            f"Anexo {family}, faixa {position}: repartição soma {sum(shares):.4f} (esperado 1)"
        )
    return Bracket(
        ceiling=float(ceiling),
        rate=float(rate),
        deduction=float(deduction),
        split=dict(zip(SPLIT_KEYS, shares)),
    )


def bracket_table(params: Dict[str, Any], family: BracketFamily) -> BracketTable:
    """Validated progressive table of one bracket family. Malformed data raises CalculationFault."""
    if family is BracketFamily.VEDADO:
        raise CalculationFault("Atividade vedada não possui tabela de faixas")

    families = params.get("simples", {}).get("families", {})
    for key in families:
        try:
            BracketFamily(key)
        except ValueError:
            raise UnknownBracketFamily(key)

    rows = families.get(family.value)
    if not rows:
        raise CalculationFault(f"Tabela do Anexo {family.value} ausente nos parâmetros")

    brackets = [_parse_bracket(family.value, i + 1, row) for i, row in enumerate(rows)]
    ceilings = [b.ceiling for b in brackets]
    if any(b <= a for a, b in zip(ceilings, ceilings[1:])):
        raise CalculationFault(f"Anexo {family.value}: tetos das faixas não são crescentes")

    return BracketTable(family=family, brackets=brackets)


def payout_fraction(params: Dict[str, Any], policy) -> float:
    value = getattr(policy, "value", policy)
    return float(params.get("payout_fractions", {}).get(value, 1.0))
