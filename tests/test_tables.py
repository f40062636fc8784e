import io

import pandas as pd
import pytest

from tributa.analyzers import analyze_company
from tributa.params import SPLIT_KEYS
from tributa.tables import comparison_csv, comparison_frame, normalize_partner_table, read_partners_csv


def test_read_partners_csv_with_portuguese_headers():
    content = "Nome,Participação,Pró-labore\nAna,60,5000\nBruno,40,\n".encode("utf-8")
    partners = read_partners_csv(content)
    assert [p.name for p in partners] == ["Ana", "Bruno"]
    assert [p.participation for p in partners] == [60.0, 40.0]
    assert partners[1].withdrawal == 0


def test_missing_columns():
    df = pd.DataFrame([{"nome": "Ana", "valor": 10}])
    with pytest.raises(ValueError):
        normalize_partner_table(df)


def test_withdrawal_column_is_optional():
    df = normalize_partner_table(pd.DataFrame([{"name": "Ana", "participation": "100"}]))
    assert df.loc[0, "withdrawal"] == 0
    assert df.loc[0, "participation"] == 100


def test_comparison_frame(software_company, single_partner):
    res = analyze_company(software_company, single_partner)
    df = comparison_frame(res.ranking)
    assert list(df["rank"]) == [1, 2, 3]
    assert set(SPLIT_KEYS) <= set(df.columns)
    assert df.loc[0, "regime"] == "simples"
    assert df.loc[0, "total_liability"] == pytest.approx(5_280)
    parts = df.loc[:, list(SPLIT_KEYS)].sum(axis=1)
    assert list(parts.round(2)) == list(df["total_liability"].round(2))

    back = pd.read_csv(io.StringIO(comparison_csv(res.ranking)))
    assert len(back) == 3
