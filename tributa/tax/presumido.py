import logging
from typing import Dict, Any

from .base import TaxEngine, Evaluation, alert, brl, pct, consumption_tax
from ..models import CompanyInputs, RegimeKind, RegimeRules, RegionalRates, Severity

logger = logging.getLogger(__name__)


class PresumidoEngine(TaxEngine):
    regime = RegimeKind.PRESUMIDO
    label = "Lucro Presumido"

    def evaluate(self, *, inputs: CompanyInputs, rules: RegimeRules, regional: RegionalRates,
                 params: Dict[str, Any]) -> Evaluation:
        p = params["presumido"]
        incentive = params.get("incentive", {})
        patronal = params["simples"].get("patronal_rate", 0.288)

        irpj_base = inputs.revenue * rules.irpj_presumption
        csll_base = inputs.revenue * rules.csll_presumption

        irpj_normal = irpj_base * p.get("irpj_rate", 0.15)
        surtax = max(0.0, irpj_base - p.get("surtax_monthly_threshold", 20_000)) * p.get("surtax_rate", 0.10)
        irpj_gross = irpj_normal + surtax
        discount = irpj_gross * incentive.get("irpj_reduction", 0.75) if inputs.regional_incentive else 0.0

        components = {
            "irpj": irpj_gross - discount,
            "csll": csll_base * p.get("csll_rate", 0.09),
            "pis": inputs.revenue * p.get("pis_rate", 0.0065),
            "cofins": inputs.revenue * p.get("cofins_rate", 0.03),
            "cpp": inputs.payroll * patronal,
            **consumption_tax(inputs, regional),
        }

        alerts = []
        ceiling = p.get("ceiling", 78_000_000)
        if inputs.annual_revenue > ceiling:
            alerts.append(alert(
                Severity.WARN, "REAL_MANDATORY",
                f"Receita anual acima de {brl(ceiling)}: Lucro Real obrigatório.",
            ))
        if inputs.declared_margin < rules.irpj_presumption:
            alerts.append(alert(
                Severity.WARN, "MARGIN_BELOW_PRESUMPTION",
                f"Margem real ({pct(inputs.declared_margin)}) inferior à presunção ({pct(rules.irpj_presumption)}). "
                "Você paga imposto sobre lucro que não existe. Avalie o Lucro Real.",
            ))
        if inputs.regional_incentive:
            alerts.append(alert(
                Severity.INFO, "INCENTIVE_APPLIED",
                f"Incentivo regional: redução de {pct(incentive.get('irpj_reduction', 0.75))} do IRPJ aplicada.",
            ))
        if rules.irpj_presumption == 0.016:
            alerts.append(alert(Severity.INFO, "SPECIAL_PRESUMPTION", "Presunção especial 1,6% para revenda de combustíveis."))
        elif rules.irpj_presumption == 0.16:
            alerts.append(alert(Severity.INFO, "SPECIAL_PRESUMPTION", "Presunção 16% para transporte de passageiros."))
        elif rules.irpj_presumption == 0.08 and rules.csll_presumption == 0.12 and inputs.category.is_service:
            alerts.append(alert(Severity.INFO, "SPECIAL_PRESUMPTION", "Presunção hospitalar/equiparada: IRPJ 8%, CSLL 12%."))

        metadata = {
            "irpj_base": irpj_base,
            "csll_base": csll_base,
            "irpj_presumption": rules.irpj_presumption,
            "csll_presumption": rules.csll_presumption,
            "irpj_normal": irpj_normal,
            "surtax": surtax,
            "incentive_discount": discount,
        }
        result = self.build_result(inputs=inputs, components=components, metadata=metadata, alerts=alerts)
        logger.debug("presumido: irpj_base=%.2f total=%.2f", irpj_base, result.total_liability)
        return result, None
