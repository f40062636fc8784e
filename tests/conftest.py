import pytest

from tributa.models import Category, CompanyInputs, PartnerConfig
from tributa.params import get_params
from tributa.regional import regional_rates


@pytest.fixture
def params():
    return get_params()


@pytest.fixture
def sp():
    return regional_rates("SP")


@pytest.fixture
def software_company():
    # Fator R = 15.000 / 50.000 = 0,30
    return CompanyInputs(
        revenue=50_000,
        payroll=15_000,
        declared_margin=0.30,
        activity_code="6201-5/01",
        category=Category.SERVICO,
        state="SP",
    )


@pytest.fixture
def single_partner():
    return [PartnerConfig(name="Ana", participation=100, withdrawal=5_000)]

