import logging
from typing import Dict, Any, List, Optional

from .models import Alert, CompanyInputs, PartnerConfig, RegionalRates, Severity
from .params import get_params
from .tax.base import alert, brl, pct

logger = logging.getLogger(__name__)

PARTICIPATION_TOLERANCE = 0.5
SERVICE_TAX_RANGE = (0.02, 0.05)


def validate(
    inputs: CompanyInputs,
    partners: List[PartnerConfig],
    *,
    regional: Optional[RegionalRates] = None,
    params: Optional[Dict[str, Any]] = None,
) -> List[Alert]:
    """Cross-field consistency checks. Only `error` alerts block the calculation."""
    params = params if params is not None else get_params()
    simples = params["simples"]
    out: List[Alert] = []

    withdrawals = sum(p.withdrawal for p in partners)
    participation = sum(p.participation for p in partners)
    annual = inputs.annual_revenue

    # Erros bloqueantes
    if not partners:
        out.append(alert(Severity.ERROR, "NO_PARTNERS", "Informe ao menos um sócio."))
    elif abs(participation - 100) > PARTICIPATION_TOLERANCE:
        out.append(alert(
            Severity.ERROR, "PARTICIPATION_SUM",
            f"Participação dos sócios soma {participation:.1f}% (deveria ser 100%).",
        ))
    if withdrawals > inputs.revenue:
        out.append(alert(
            Severity.ERROR, "WITHDRAWAL_EXCEEDS_REVENUE",
            "Pró-labore total é maior que o faturamento. Verifique os valores.",
        ))

    # Avisos
    if inputs.cost_of_goods + inputs.operating_expenses + inputs.payroll > inputs.revenue:
        out.append(alert(
            Severity.WARN, "OPERATING_LOSS",
            "Custos + Despesas + Folha excedem o faturamento: empresa opera no prejuízo.",
        ))
    if inputs.revenue > 0:
        for p in partners:
            if p.withdrawal <= 0:
                out.append(alert(
                    Severity.WARN, "MISSING_WITHDRAWAL",
                    f"Sócio {p.name} sem pró-labore pode ser questionado pela Receita Federal. "
                    "Recomenda-se ao menos 1 salário mínimo.",
                ))
    if 0 < inputs.payroll < withdrawals:
        out.append(alert(
            Severity.WARN, "PAYROLL_BELOW_WITHDRAWALS",
            "Folha de pagamento é menor que o pró-labore total. A folha deve incluir o pró-labore.",
        ))
    if inputs.employees == 0 and inputs.payroll > withdrawals > 0:
        out.append(alert(
            Severity.WARN, "UNEXPLAINED_PAYROLL",
            f"Funcionários = 0, mas a folha ({brl(inputs.payroll)}) excede o pró-labore ({brl(withdrawals)}) "
            f"em {brl(inputs.payroll - withdrawals)}. Essa diferença distorce o Fator R do Simples Nacional.",
        ))

    ceiling = simples.get("ceiling", 4_800_000)
    subceiling = regional.subceiling if regional is not None else simples.get("default_subceiling", 3_600_000)
    if subceiling < annual <= ceiling:
        out.append(alert(
            Severity.WARN, "SUBCEILING_EXCEEDED",
            f"Receita anual ({brl(annual)}) acima do sublimite estadual ({brl(subceiling)}): ICMS/ISS fora do DAS.",
        ))
    if annual > ceiling:
        out.append(alert(
            Severity.WARN, "SIMPLES_CEILING_EXCEEDED",
            f"Receita anual ({brl(annual)}) acima do teto do Simples Nacional ({brl(ceiling)}).",
        ))

    low, high = SERVICE_TAX_RANGE
    if not low <= inputs.service_tax_rate <= high:
        out.append(alert(
            Severity.WARN, "SERVICE_TAX_RANGE",
            f"Alíquota de ISS ({pct(inputs.service_tax_rate)}) fora da faixa legal de 2% a 5%.",
        ))
    if inputs.regional_incentive and regional is not None and not regional.has_incentive:
        out.append(alert(
            Severity.WARN, "INCENTIVE_NOT_AVAILABLE",
            f"{regional.name} não está na área de atuação da SUDAM/SUDENE: incentivo regional indisponível.",
        ))

    # Informativos
    if inputs.interstate_sales:
        out.append(alert(
            Severity.INFO, "INTERSTATE_SALES",
            "Vendas interestaduais: DIFAL e alíquotas interestaduais não são considerados nesta simulação.",
        ))
    if inputs.revenue == 0:
        out.append(alert(Severity.INFO, "ZERO_REVENUE", "Faturamento zerado: os resultados são apenas ilustrativos."))

    if out:
        logger.debug("validation produced %d alert(s): %s", len(out), [a.code for a in out])
    return out


def blocking(alerts: List[Alert]) -> List[Alert]:
    return [a for a in alerts if a.severity is Severity.ERROR]


def equalize(partners: List[PartnerConfig]) -> List[PartnerConfig]:
    """Equal participation for everyone; the last partner absorbs the rounding so the set sums to 100."""
    n = len(partners)
    if n == 0:
        return []
    share = round(100 / n, 2)
    out = [p.model_copy(update={"participation": share}) for p in partners[:-1]]
    out.append(partners[-1].model_copy(update={"participation": round(100 - share * (n - 1), 2)}))
    return out
