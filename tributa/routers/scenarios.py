from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..models import ScenarioRequest, ScenarioSet
from ..scenarios import best_scenario, simulate_scenarios

router = APIRouter(prefix="/scenarios", tags=["Scenarios"])


# --------------------------
# POST /scenarios
# --------------------------
@router.post("", response_model=ScenarioSet)
def create_scenarios(body: ScenarioRequest):
    items = simulate_scenarios(body.available_profit, body.partners, body.payout_fraction)
    best = best_scenario(items)
    result = ScenarioSet(scenarios=items, best=best.key if best else None)
    return JSONResponse(content=result.model_dump(mode="json"))
