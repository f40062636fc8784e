import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Callable, Tuple

from .base import TaxEngine, Evaluation, alert, brl, pct
from ..models import (
    Alert, BracketFamily, CompanyInputs, RegimeKind, RegimeRules, RegionalRates, Severity,
)
from ..params import Bracket, SPLIT_KEYS, bracket_table

logger = logging.getLogger(__name__)


def payroll_ratio(inputs: CompanyInputs) -> float:
    return inputs.payroll / inputs.revenue if inputs.revenue > 0 else 0.0


def select_family(rules: RegimeRules, ratio: float, p: Dict[str, Any]) -> BracketFamily:
    """Fator R: hard step at the threshold, no interpolation."""
    if not rules.payroll_ratio_sensitive:
        return rules.family
    cfg = p.get("payroll_ratio", {})
    if ratio >= cfg.get("threshold", 0.28):
        return BracketFamily(cfg.get("favourable", "III"))
    return BracketFamily(cfg.get("unfavourable", "V"))


def effective_rate(annual_revenue: float, bracket: Bracket) -> float:
    if annual_revenue <= 0:
        return 0.0
    return max(0.0, (annual_revenue * bracket.rate - bracket.deduction) / annual_revenue)


# ---------------------------------------------------------------------
# ADJUSTMENT PIPELINE
# ---------------------------------------------------------------------
@dataclass
class Accumulator:
    """Liability being built for one calculation; only the adjustment steps mutate it."""
    inside: Dict[str, float]
    outside: Dict[str, float] = field(default_factory=lambda: {k: 0.0 for k in SPLIT_KEYS})
    zeroed: set = field(default_factory=set)
    alerts: List[Alert] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)

    def zero(self, *keys: str) -> None:
        for k in keys:
            self.inside[k] = 0.0
            self.zeroed.add(k)


@dataclass(frozen=True)
class Context:
    inputs: CompanyInputs
    rules: RegimeRules
    regional: RegionalRates
    family: BracketFamily
    annual_revenue: float
    p: Dict[str, Any]


def single_phase_products(acc: Accumulator, ctx: Context) -> None:
    if not ctx.rules.single_phase:
        return
    acc.zero("pis", "cofins")
    acc.applied.append("single_phase")
    group = f" ({ctx.rules.single_phase_group})" if ctx.rules.single_phase_group else ""
    acc.alerts.append(alert(
        Severity.INFO, "SINGLE_PHASE",
        f"Produto monofásico{group}: PIS/COFINS excluídos do DAS.",
    ))


def tax_substitution(acc: Accumulator, ctx: Context) -> None:
    # serviços não recolhem ICMS no DAS
    if not ctx.inputs.tax_substitution or ctx.inputs.category.is_service:
        return
    acc.zero("icms")
    acc.applied.append("tax_substitution")
    acc.alerts.append(alert(
        Severity.INFO, "TAX_SUBSTITUTION",
        "Substituição Tributária: ICMS zerado no DAS (já recolhido na cadeia anterior).",
    ))


def payroll_charge_exclusion(acc: Accumulator, ctx: Context) -> None:
    excluded = [BracketFamily(f) for f in ctx.p.get("cpp_outside_families", ["IV"])]
    if ctx.family not in excluded:
        return
    acc.zero("cpp")
    acc.outside["cpp"] = ctx.inputs.payroll * ctx.p.get("patronal_rate", 0.288)
    acc.applied.append("payroll_charge_exclusion")
    acc.alerts.append(alert(
        Severity.INFO, "CPP_OUTSIDE",
        f"Anexo {ctx.family.value}: CPP (INSS patronal ~{pct(ctx.p.get('patronal_rate', 0.288))}) paga fora do DAS.",
    ))


def subceiling_pushout(acc: Accumulator, ctx: Context) -> None:
    """Above the state sub-ceiling ICMS/ISS leave the DAS and are charged on full monthly revenue."""
    if ctx.annual_revenue <= ctx.regional.subceiling:
        return
    inputs = ctx.inputs
    if inputs.category.is_service:
        acc.outside["iss"] = inputs.revenue * inputs.service_tax_rate
    elif "icms" not in acc.zeroed:
        # ICMS já zerado por substituição tributária continua fora da conta
        rate = ctx.regional.reduced_rate if inputs.reduced_basket else ctx.regional.icms_rate
        acc.outside["icms"] = inputs.revenue * rate
    acc.zero("icms", "iss")
    acc.applied.append("subceiling_pushout")
    if ctx.annual_revenue <= ctx.p.get("ceiling", 4_800_000):
        acc.alerts.append(alert(
            Severity.WARN, "SUBCEILING_EXCEEDED",
            f"RBT12 acima do sublimite estadual ({brl(ctx.regional.subceiling)}). ICMS/ISS pagos fora do DAS.",
        ))


# a ordem importa: cada etapa enxerga os componentes zerados pelas anteriores
ADJUSTMENTS: Tuple[Callable[[Accumulator, Context], None], ...] = (
    single_phase_products,
    tax_substitution,
    payroll_charge_exclusion,
    subceiling_pushout,
)


class SimplesEngine(TaxEngine):
    regime = RegimeKind.SIMPLES
    label = "Simples Nacional"

    def evaluate(self, *, inputs: CompanyInputs, rules: RegimeRules, regional: RegionalRates,
                 params: Dict[str, Any]) -> Evaluation:
        p = params["simples"]
        annual = inputs.annual_revenue
        ceiling = p.get("ceiling", 4_800_000)

        if rules.barred:
            return None, rules.barred_reason or "Atividade vedada ao Simples Nacional"
        if annual > ceiling:
            return None, f"Receita anual ({brl(annual)}) acima do teto do Simples Nacional ({brl(ceiling)})."

        ratio = payroll_ratio(inputs)
        family = select_family(rules, ratio, p)
        if family is BracketFamily.VEDADO:
            return None, "Anexo resultante do Fator R é vedado ao Simples Nacional"

        table = bracket_table(params, family)
        index, bracket = table.select(annual)
        rate = effective_rate(annual, bracket)
        gross = inputs.revenue * rate

        acc = Accumulator(inside={k: gross * bracket.split[k] for k in SPLIT_KEYS})
        ctx = Context(inputs=inputs, rules=rules, regional=regional, family=family, annual_revenue=annual, p=p)
        for step in ADJUSTMENTS:
            step(acc, ctx)

        threshold = p.get("payroll_ratio", {}).get("threshold", 0.28)
        if rules.payroll_ratio_sensitive and ratio < threshold:
            acc.alerts.append(alert(
                Severity.WARN, "PAYROLL_RATIO_LOW",
                f"Fator R ({pct(ratio)}) abaixo de {pct(threshold)}: tributação pelo Anexo {family.value} "
                "(mais caro). Aumentar a folha pode reduzir impostos.",
            ))

        metadata = {
            "family": family.value,
            "bracket": index + 1,
            "nominal_rate": bracket.rate,
            "deduction": bracket.deduction,
            "simples_effective_rate": rate,
            "gross_das": gross,
            "das": sum(acc.inside.values()),
            "payroll_ratio": ratio,
            "annual_revenue": annual,
            "adjustments": tuple(acc.applied),
        }
        result = self.build_result(
            inputs=inputs, components=acc.inside, outside=acc.outside, metadata=metadata, alerts=acc.alerts,
        )
        logger.debug("simples: family=%s bracket=%d total=%.2f", family.value, index + 1, result.total_liability)
        return result, None
