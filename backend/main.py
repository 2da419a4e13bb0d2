# main.py

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import medications
from calculator import (
    calculate_all,
    calculate_volume,
    filter_results,
    format_total_dose,
    sort_results,
)
from constants import VERSION, DOSING_LIMITS, MedicationType
from export import build_form_payload, build_report
from models import CalculatedMedication, MedicationRecord

# --- 1. CONFIGURATION & LOGGING ---
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("pediadose-api")

app = FastAPI(
    title="PediaDose API",
    version=VERSION,
    description="Weight-based medication volumes for pediatric emergency care. \n\n"
                "**WARNING**: Decision Support Tool Only. Verify every dose before administration.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {"status": "active", "message": "PediaDose API is running successfully!"}


@app.get("/health")
def health_check():
    """Liveness probe"""
    return {"status": "active", "version": VERSION, "module": "pediadose-calculation-engine"}


# --- 2. SCHEMAS ---

class MedicationOut(BaseModel):
    name: str
    type: MedicationType
    concentration: str
    concentration_per_ml: Optional[float]
    dose_unit: str
    equation: str
    min_volume_ml: Optional[float]
    max_volume_ml: Optional[float]
    route: str
    category: str
    notes: str
    requires_dose_input: bool


class CalculateRequest(BaseModel):
    weight_kg: float = Field(..., gt=0, le=DOSING_LIMITS.MAX_WEIGHT_KG, description="Weight in kg")
    type: MedicationType = MedicationType.ALL
    precision: int = Field(DOSING_LIMITS.DECIMAL_PRECISION, ge=0, le=6)
    query: Optional[str] = Field(None, description="Free-text filter on name, route or category")
    sort_by: Optional[str] = Field(None, description="name, route, category, type, volume or dose")
    descending: bool = False


class SingleCalculationRequest(BaseModel):
    name: str
    type: MedicationType = MedicationType.ALL
    weight_kg: float = Field(..., gt=0, le=DOSING_LIMITS.MAX_WEIGHT_KG)
    custom_dose: Optional[float] = Field(None, gt=0, description="Secondary dose bound to D")
    precision: int = Field(DOSING_LIMITS.DECIMAL_PRECISION, ge=0, le=6)


class ExportRequest(BaseModel):
    weight_kg: float = Field(..., gt=0, le=DOSING_LIMITS.MAX_WEIGHT_KG)
    precision: int = Field(DOSING_LIMITS.DECIMAL_PRECISION, ge=0, le=6)


class CalculateResponse(BaseModel):
    weight_kg: float
    type: MedicationType
    count: int
    error_count: int
    rows: List[dict]


def _medication_out(record: MedicationRecord) -> MedicationOut:
    return MedicationOut(
        name=record.name,
        type=record.type,
        concentration=record.display_concentration,
        concentration_per_ml=record.concentration_per_ml,
        dose_unit=record.dose_unit,
        equation=record.equation,
        min_volume_ml=record.min_volume_ml,
        max_volume_ml=record.max_volume_ml,
        route=record.route,
        category=record.category,
        notes=record.notes,
        requires_dose_input=record.requires_dose_input,
    )


# --- 3. ENDPOINTS ---

@app.get("/medications", response_model=List[MedicationOut])
def list_medications(type: MedicationType = MedicationType.ALL, q: Optional[str] = None,
                     category: Optional[str] = None, route: Optional[str] = None):
    """Table query. Filters combine (AND) with the partition."""
    records = medications.get_by_type(type)
    if q:
        matches = set(medications.search(q))
        records = [r for r in records if r in matches]
    if category:
        matches = set(medications.filter_by_category(category))
        records = [r for r in records if r in matches]
    if route:
        matches = set(medications.filter_by_route(route))
        records = [r for r in records if r in matches]
    return [_medication_out(r) for r in records]


@app.get("/medications/stats")
def medication_stats():
    return medications.stats().to_dict()


@app.post("/calculate", response_model=CalculateResponse)
def calculate(request: CalculateRequest):
    """
    Volumes for every medication of a partition that needs no dose input.
    Rows that fail carry their error inline; the rest still come back.
    """
    logger.info(f"Calculating {request.type.value} medications for Wt: {request.weight_kg}kg")
    try:
        rows: List[CalculatedMedication] = calculate_all(
            request.type, request.weight_kg, precision=request.precision
        )
        rows = filter_results(rows, request.query)
        if request.sort_by:
            rows = sort_results(rows, request.sort_by, reverse=request.descending)
    except ValueError as e:
        logger.warning(f"Calculation request rejected: {str(e)}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Internal Engine Failure: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Calculation Engine Error")

    return CalculateResponse(
        weight_kg=request.weight_kg,
        type=request.type,
        count=len(rows),
        error_count=sum(1 for row in rows if not row.result.success),
        rows=[row.to_dict() for row in rows],
    )


@app.post("/calculate/single")
def calculate_single(request: SingleCalculationRequest):
    """One medication, including those that need a secondary dose (D)."""
    record = medications.find(request.name, request.type)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown medication: {request.name}")

    result = calculate_volume(record, request.weight_kg, request.custom_dose,
                              precision=request.precision)
    if not result.success:
        logger.warning(f"{record.name}: {result.error}")
    row = CalculatedMedication(
        record=record,
        result=result,
        total_dose=format_total_dose(record, result, request.precision),
    )
    return row.to_dict()


@app.post("/export/payload")
def export_payload(request: ExportRequest):
    """Form-template payload and report summary for an export client."""
    logger.info(f"Building export payload for Wt: {request.weight_kg}kg")
    rows = calculate_all(MedicationType.ALL, request.weight_kg, precision=request.precision)
    report = build_report(rows, request.weight_kg)
    return {
        "payload": build_form_payload(rows, request.weight_kg),
        "report": report.to_dict(),
    }
