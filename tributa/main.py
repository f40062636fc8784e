import os
import json
import logging
from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, Form, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

# ---------------------------------------------------------------------
# INTERNAL IMPORTS
# ---------------------------------------------------------------------
from tributa.models import AnalysisRequest, AnalysisResult, Alert, CompanyInputs, PartnerConfig, RegimeRules, RegionalRates
from tributa.analyzers import analyze_company
from tributa.errors import CalculationFault, ValidationFailed
from tributa.regional import list_states, regional_rates
from tributa.rules import resolve_rules
from tributa.tables import comparison_csv, read_partners_csv
from tributa.validation import equalize, validate
from .routers import scenarios

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# FASTAPI APP
# ---------------------------------------------------------------------
app = FastAPI(title="Tributa", version="0.3.0")

_env_origins = os.getenv("ALLOWED_ORIGIN")
if _env_origins:
    ALLOWED_ORIGINS = [o.strip() for o in _env_origins.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:8000",
        "http://127.0.0.1:8000",
        "http://localhost:5500",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


# ---------------------------------------------------------------------
# HEALTH ROUTES
# ---------------------------------------------------------------------
@app.get("/")
def root():
    return {"ok": True, "service": "tributa-api"}


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------
# ANALYSIS
# ---------------------------------------------------------------------
@app.post("/analyze", response_model=AnalysisResult)
def analyze_endpoint(body: AnalysisRequest):
    result = analyze_company(body.company, body.partners)
    return JSONResponse(content=result.model_dump(mode="json"))


@app.post("/analyze/partners-csv", response_model=AnalysisResult)
async def analyze_partners_csv_endpoint(
    file: UploadFile = File(...),
    company: str = Form(...),
):
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(400, "Envie um arquivo CSV.")
    try:
        inputs = CompanyInputs.model_validate(json.loads(company))
    except (json.JSONDecodeError, ValidationError) as e:
        raise HTTPException(400, f"Dados da empresa inválidos: {e}")
    try:
        partners = read_partners_csv(await file.read())
    except ValueError as e:
        raise HTTPException(400, f"CSV de sócios ilegível: {e}")

    result = analyze_company(inputs, partners)
    return JSONResponse(content=result.model_dump(mode="json"))


@app.post("/analyze/comparison.csv")
def comparison_endpoint(body: AnalysisRequest):
    result = analyze_company(body.company, body.partners)
    return Response(
        content=comparison_csv(result.ranking),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="comparativo_regimes.csv"'},
    )


@app.post("/validate", response_model=List[Alert])
def validate_endpoint(body: AnalysisRequest):
    regional = regional_rates(body.company.state)
    return validate(body.company, body.partners, regional=regional)


@app.post("/partners/equalize", response_model=List[PartnerConfig])
def equalize_endpoint(partners: List[PartnerConfig]):
    return equalize(partners)


# ---------------------------------------------------------------------
# LOOKUPS
# ---------------------------------------------------------------------
@app.get("/rules/{activity_code:path}", response_model=RegimeRules)
def rules_endpoint(activity_code: str, category: Optional[str] = None):
    return resolve_rules(activity_code, category)


@app.get("/regional", response_model=List[RegionalRates])
def regional_list_endpoint():
    return [regional_rates(uf) for uf in list_states()]


@app.get("/regional/{state}", response_model=RegionalRates)
def regional_endpoint(state: str):
    return regional_rates(state)


# ---------------------------------------------------------------------
# ROUTERS
# ---------------------------------------------------------------------
app.include_router(scenarios.router)


# =====================================================
# EXCEPTION HANDLERS
# =====================================================
@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "alerts": [a.model_dump(mode="json") for a in exc.alerts]},
    )


@app.exception_handler(CalculationFault)
async def calculation_fault_handler(request: Request, exc: CalculationFault):
    logger.error("calculation aborted: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"detail": str(exc)})
