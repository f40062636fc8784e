import pytest

from tributa.errors import UnknownBracketFamily
from tributa.models import BracketFamily, Category
from tributa.regional import list_states, regional_rates
from tributa.rules import Classification, normalize_code, resolve_rules


def test_specific_code():
    rules = resolve_rules("6201-5/01")
    assert rules.provenance == "specific"
    assert rules.family is BracketFamily.V
    assert rules.payroll_ratio_sensitive
    assert not rules.estimated
    assert rules.irpj_presumption == 0.32


def test_digits_only_code_is_normalized():
    assert normalize_code("6201501") == "6201-5/01"
    assert resolve_rules("6201501").provenance == "specific"


def test_prefix_match():
    rules = resolve_rules("6209-1/00")
    assert rules.provenance == "prefix"
    assert rules.family is BracketFamily.V
    assert rules.payroll_ratio_sensitive
    assert rules.note == "Tecnologia da informação"
    assert not rules.estimated


def test_longest_prefix_wins():
    table = Classification({
        "prefixes": [
            {"prefix": "62", "family": "V", "ratio": True, "irpj": 0.32, "csll": 0.32},
            {"prefix": "6204", "family": "III", "irpj": 0.32, "csll": 0.32},
        ],
    })
    assert resolve_rules("6204-0/99", classification=table).family is BracketFamily.III
    assert resolve_rules("6201-5/99", classification=table).family is BracketFamily.V


def test_category_fallback_is_estimated():
    rules = resolve_rules("9999-9/99", Category.COMERCIO)
    assert rules.provenance == "category"
    assert rules.estimated
    assert rules.family is BracketFamily.I
    assert rules.irpj_presumption == 0.08


def test_category_given_as_text():
    rules = resolve_rules("", "Construção")
    assert rules.provenance == "category"
    assert rules.family is BracketFamily.IV


def test_default_when_nothing_matches():
    rules = resolve_rules("9999-9/99", "Outro")
    assert rules.provenance == "default"
    assert rules.estimated
    assert rules.family is BracketFamily.III


def test_barred_activity():
    rules = resolve_rules("6421-2/00")
    assert rules.barred
    assert rules.family is BracketFamily.VEDADO
    assert "financeira" in rules.barred_reason


def test_barred_by_prefix():
    rules = resolve_rules("6499-9/99")
    assert rules.provenance == "prefix"
    assert rules.barred


def test_single_phase_product():
    rules = resolve_rules("4731-8/00")
    assert rules.single_phase
    assert rules.single_phase_group == "combustíveis"
    assert rules.irpj_presumption == 0.016

    assert not resolve_rules("4711-3/01").single_phase


def test_unknown_family_in_table():
    with pytest.raises(UnknownBracketFamily):
        Classification({"specific": {"0000-0/00": {"family": "VI", "irpj": 0.32, "csll": 0.32}}})


def test_regional_lookup():
    sp = regional_rates("SP")
    assert sp.icms_rate == 0.18
    assert sp.subceiling == 3_600_000
    assert not sp.estimated
    assert not sp.has_incentive

    ba = regional_rates(" ba ")
    assert ba.state == "BA"
    assert ba.sudene and ba.has_incentive


def test_regional_unknown_state_falls_back():
    xx = regional_rates("XX")
    assert xx.estimated
    assert xx.icms_rate == 0.18


def test_list_states():
    states = list_states()
    assert len(states) == 27
    assert "SP" in states and "TO" in states
