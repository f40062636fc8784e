import io
from typing import List

import pandas as pd

from .models import PartnerConfig, RankedRegime
from .params import SPLIT_KEYS

# cabeçalhos aceitos no CSV de sócios
COLUMN_ALIASES = {
    "nome": "name",
    "socio": "name",
    "sócio": "name",
    "participacao": "participation",
    "participação": "participation",
    "pro_labore": "withdrawal",
    "pró-labore": "withdrawal",
    "pro-labore": "withdrawal",
    "prolabore": "withdrawal",
}


def normalize_partner_table(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = df.columns.astype(str).str.lower().str.strip()
    df = df.rename(columns=COLUMN_ALIASES)
    req = {"name", "participation"}
    if not req.issubset(set(df.columns)):
        raise ValueError(f"Colunas obrigatórias ausentes: {sorted(req - set(df.columns))}")
    if "withdrawal" not in df.columns:
        df["withdrawal"] = 0.0
    df["name"] = df["name"].astype(str).str.strip()
    for col in ["participation", "withdrawal"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
    return df[df["name"] != ""]


def read_partners_csv(content: bytes) -> List[PartnerConfig]:
    df = normalize_partner_table(pd.read_csv(io.BytesIO(content)))
    return [
        PartnerConfig(name=row.name, participation=float(row.participation), withdrawal=float(row.withdrawal))
        for row in df[["name", "participation", "withdrawal"]].itertuples(index=False)
    ]


def comparison_frame(ranking: List[RankedRegime]) -> pd.DataFrame:
    """One row per ranked regime with its component breakdown and partner totals."""
    rows = []
    for item in ranking:
        r = item.regime
        row = {"rank": item.rank, "regime": r.regime.value, "label": r.label}
        for key in SPLIT_KEYS:
            row[key] = getattr(r.components, key) + getattr(r.outside, key)
        row["outside_collection"] = r.outside.total()
        row["total_liability"] = r.total_liability
        row["effective_rate"] = r.effective_rate
        row["available_profit"] = item.personal.available_profit
        row["aggregate_net_cash"] = item.personal.aggregate_net_cash
        rows.append(row)

    columns = ["rank", "regime", "label", *SPLIT_KEYS, "outside_collection", "total_liability",
               "effective_rate", "available_profit", "aggregate_net_cash"]
    df = pd.DataFrame(rows, columns=columns)
    money = [c for c in columns if c not in ("rank", "regime", "label", "effective_rate")]
    df[money] = df[money].round(2)
    df["effective_rate"] = df["effective_rate"].round(4)
    return df


def comparison_csv(ranking: List[RankedRegime]) -> str:
    return comparison_frame(ranking).to_csv(index=False)
