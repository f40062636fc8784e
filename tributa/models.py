from enum import Enum
from types import MappingProxyType
from typing import Annotated, List, Optional, Dict, Any, Literal, Mapping

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer


class Category(str, Enum):
    COMERCIO = "Comércio"
    INDUSTRIA = "Indústria"
    SERVICO = "Serviço"
    CONSTRUCAO = "Construção"

    @property
    def is_service(self) -> bool:
        # Serviço e Construção recolhem ISS; os demais, ICMS
        return self in (Category.SERVICO, Category.CONSTRUCAO)


class PayoutPolicy(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    REINVEST = "reinvest"


class BracketFamily(str, Enum):
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"
    V = "V"
    VEDADO = "VEDADO"


class RegimeKind(str, Enum):
    SIMPLES = "simples"
    PRESUMIDO = "presumido"
    REAL = "real"


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


# ---------------------------------------------------------------------
# INPUTS
# ---------------------------------------------------------------------
class CompanyInputs(BaseModel):
    """Monthly snapshot of the company. Monetary values in BRL, rates as fractions."""
    model_config = ConfigDict(frozen=True)

    revenue: float = Field(ge=0)
    payroll: float = Field(0.0, ge=0)
    cost_of_goods: float = Field(0.0, ge=0)
    operating_expenses: float = Field(0.0, ge=0)
    employees: int = Field(0, ge=0)
    declared_margin: float = 0.0
    growth_rate: float = Field(0.0, ge=-1)
    activity_code: str = ""
    category: Category = Category.SERVICO
    state: str = "SP"
    municipality: Optional[str] = None
    service_tax_rate: float = Field(0.05, ge=0, le=1)
    tax_substitution: bool = False
    reduced_basket: bool = False
    regional_incentive: bool = False
    interstate_sales: bool = False
    payout_policy: PayoutPolicy = PayoutPolicy.FULL
    tax_loss_carryforward: float = Field(0.0, ge=0)
    negative_csll_base: float = Field(0.0, ge=0)
    credit_base_override: float = Field(0.0, ge=0)

    @property
    def annual_revenue(self) -> float:
        return self.revenue * 12


class PartnerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    participation: float = Field(ge=0, le=100)
    withdrawal: float = Field(0.0, ge=0)


class AnalysisRequest(BaseModel):
    company: CompanyInputs
    partners: List[PartnerConfig]


# ---------------------------------------------------------------------
# RESOLVED RULES / REGIONAL DATA
# ---------------------------------------------------------------------
class RegimeRules(BaseModel):
    model_config = ConfigDict(frozen=True)

    activity_code: str = ""
    family: BracketFamily
    irpj_presumption: float
    csll_presumption: float
    barred: bool = False
    barred_reason: str = ""
    single_phase: bool = False
    single_phase_group: Optional[str] = None
    payroll_ratio_sensitive: bool = False
    provenance: Literal["specific", "prefix", "category", "default"]
    estimated: bool = False
    note: str = ""


class RegionalRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: str
    name: str
    icms_rate: float
    reduced_rate: float
    subceiling: float
    sudam: bool = False
    sudene: bool = False
    partial_incentive: bool = False
    estimated: bool = False

    @property
    def has_incentive(self) -> bool:
        return self.sudam or self.sudene


# ---------------------------------------------------------------------
# RESULTS
# ---------------------------------------------------------------------
# leitura apenas; serializa como dict comum
ReadOnlyMetadata = Annotated[
    Mapping[str, Any],
    AfterValidator(lambda v: MappingProxyType(dict(v))),
    PlainSerializer(dict, return_type=Dict[str, Any]),
]


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    code: str
    message: str


class TaxComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    irpj: float = 0.0
    csll: float = 0.0
    pis: float = 0.0
    cofins: float = 0.0
    cpp: float = 0.0
    icms: float = 0.0
    iss: float = 0.0
    ipi: float = 0.0

    def total(self) -> float:
        return sum(self.model_dump().values())


class RegimeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    regime: RegimeKind
    label: str
    components: TaxComponents
    outside: TaxComponents = Field(default_factory=TaxComponents)
    total_liability: float
    effective_rate: float
    metadata: ReadOnlyMetadata = Field(default_factory=dict, validate_default=True)
    alerts: List[Alert] = []


class WithdrawalBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    gross: float
    social_contribution: float
    income_tax_gross: float
    relief: float
    income_tax: float
    net: float


class DividendBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    gross: float
    exempt: float
    taxable: float
    withheld: float
    net: float
    above_threshold: bool


class PartnerPersonalResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    participation: float
    withdrawal: WithdrawalBreakdown
    dividend: DividendBreakdown
    minimum_tax_topup: float
    net_cash: float


class PersonalImpactResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    regime: RegimeKind
    available_profit: float
    available_profit_raw: float
    payout_fraction: float
    partners: List[PartnerPersonalResult]
    aggregate_net_cash: float
    tax_burden: float


class RankedRegime(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    regime: RegimeResult
    personal: PersonalImpactResult


class Exclusion(BaseModel):
    model_config = ConfigDict(frozen=True)

    regime: RegimeKind
    label: str
    reason: str


class ScenarioAllocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    participation: float
    gross: float
    exempt: float
    taxable: float
    withheld: float
    net: float
    retained: float = 0.0


class Scenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: Literal["proportional", "equal", "max_exemption"]
    name: str
    description: str
    allocations: List[ScenarioAllocation]
    total_withheld: float
    total_net: float
    total_retained: float


class ScenarioRequest(BaseModel):
    available_profit: float
    partners: List[PartnerConfig]
    payout_fraction: float = Field(1.0, ge=0, le=1)


class ScenarioSet(BaseModel):
    scenarios: List[Scenario]
    best: Optional[str] = None


class ProjectionMonth(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: int
    revenue: float
    annualized: float
    above_ceiling: bool
    above_subceiling: bool


class Projection(BaseModel):
    model_config = ConfigDict(frozen=True)

    regime: Optional[RegimeKind] = None
    monthly_growth: float
    months: List[ProjectionMonth]
    first_month_above_ceiling: Optional[int] = None
    first_month_above_subceiling: Optional[int] = None
    annual_revenue: float
    annual_liability: float
    annual_profit: float
    alerts: List[Alert] = []


class AnalysisResult(BaseModel):
    rules: RegimeRules
    regional: RegionalRates
    validation: List[Alert] = []
    ranking: List[RankedRegime] = []
    exclusions: List[Exclusion] = []
    recommended: Optional[RegimeKind] = None
    scenarios: List[Scenario] = []
    projection: Optional[Projection] = None
