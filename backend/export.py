"""
PediaDose: Export Payloads
==========================
Turns calculated rows into the data an export client needs: the flat
field->text payload for the emergency drug form template, and a report
summary for a generated document. Rendering the PDF itself happens outside
this service.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from constants import MedicationType
from evaluator import format_literal
from models import CalculatedMedication, MedicationRecord

logger = logging.getLogger("pediadose.export")

WEIGHT_FIELD = "Weight"
DATE_FIELD = "Date"

# Lower-cased "name route" or "name" -> text field id in the form template.
# The template is the emergency sheet, so only emergency records are mapped.
FIELD_MAP: Dict[str, str] = {
    # Epinephrine
    "epinephrine 1:10,000 iv/io": "EpinephrineIV",
    "epinephrine 1:10,000": "EpinephrineIV",
    "epinephrine 1:1,000 et": "EpinephrineET",
    "epinephrine 1:1,000": "EpinephrineET",

    # Atropine (IV)
    "atropine 1 mg/10 ml iv": "Atropine_01_IV",
    "atropine 0.5 mg/ml iv": "Atropine_05_IV",
    "atropine 0.6 mg/ml iv": "Atropine_06_IV",

    # Atropine (ET)
    "atropine et 1 mg/10 ml et": "Atropine_01_ET",
    "atropine et 0.5 mg/ml et": "Atropine_05_ET",
    "atropine et 0.6 mg/ml et": "Atropine_06_ET",

    # Cardiac & Electrolyte
    "amiodarone": "Amiodarone",
    "adenosine 1st": "Adenosine1",
    "adenosine 2nd": "Adenosine2",
    "calcium": "Calcium",

    # Antidotes
    "flumazenil": "Flumazenil",
    "naloxone iv": "NaloxoneIV",
    "naloxone et": "NaloxoneET",

    "glucagon": "Glucagon",
    "lidocaine iv": "LidocaineIV",
    "lidocaine et": "LidocaineET",
    "rocuronium": "Rocuronium",

    # Electrolyte / Fluid
    "sodium bicarbonate": "Bicarbonate",
    "sodium chloride": "VolumeExpanders",
}

# (upper weight bound exclusive in kg, label)
AGE_BANDS = (
    (3, "Newborn"),
    (6, "1-3 months"),
    (8, "3-6 months"),
    (10, "6-9 months"),
    (12, "9-12 months"),
    (14, "1-2 years"),
    (16, "2-3 years"),
    (20, "4-5 years"),
    (25, "6-8 years"),
    (35, "9-11 years"),
    (45, "12-14 years"),
)


def field_for(record: MedicationRecord) -> Optional[str]:
    """Form field for a record; the route-qualified key wins over the bare name."""
    if record.type is not MedicationType.EMERGENCY:
        return None
    name = record.name.lower()
    return FIELD_MAP.get(f"{name} {record.route.lower()}") or FIELD_MAP.get(name)


def estimate_age(weight: float) -> str:
    for upper, label in AGE_BANDS:
        if weight < upper:
            return label
    return "15+ years"


def format_weight(weight: float) -> str:
    return f"{format_literal(weight)} kg"


def build_form_payload(results: Iterable[CalculatedMedication], weight: float,
                       generated_on: Optional[date] = None) -> Dict[str, str]:
    """
    Flat {field id: text} payload for the form template.
    Rows that failed or have no mapped field are left out.
    """
    generated_on = generated_on or date.today()
    payload = {
        WEIGHT_FIELD: format_weight(weight),
        DATE_FIELD: generated_on.isoformat(),
    }
    for row in results:
        if not row.result.success:
            continue
        field_id = field_for(row.record)
        if field_id is None:
            logger.debug(f"No form field for {row.name} ({row.route})")
            continue
        payload[field_id] = f"{row.result.display_volume} mL"
    return payload


def export_file_name(weight: float, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"Pediatric_Drug_Calculations_{format_literal(weight)}kg_{now.strftime('%Y-%m-%d_%H-%M')}.pdf"


def _report_row(row: CalculatedMedication) -> dict:
    return {
        "name": row.name,
        "volume": f"{row.display_volume} mL" if row.result.success else row.result.error,
        "dose": row.total_dose,
        "route": row.route,
        "concentration": row.record.display_concentration,
    }


@dataclass
class ExportReport:
    """Everything a generated report shows, independent of layout."""
    weight_kg: float
    age_estimate: str
    generated_at: datetime
    file_name: str
    emergency_rows: List[dict] = field(default_factory=list)
    prrt_rows: List[dict] = field(default_factory=list)

    @property
    def emergency_count(self) -> int:
        return len(self.emergency_rows)

    @property
    def prrt_count(self) -> int:
        return len(self.prrt_rows)

    @property
    def total(self) -> int:
        return self.emergency_count + self.prrt_count

    def to_dict(self) -> dict:
        return {
            "weight_kg": self.weight_kg,
            "age_estimate": self.age_estimate,
            "generated_at": self.generated_at.isoformat(timespec="seconds"),
            "file_name": self.file_name,
            "total": self.total,
            "emergency_count": self.emergency_count,
            "prrt_count": self.prrt_count,
            "emergency_rows": self.emergency_rows,
            "prrt_rows": self.prrt_rows,
        }


def build_report(results: Iterable[CalculatedMedication], weight: float,
                 now: Optional[datetime] = None) -> ExportReport:
    now = now or datetime.now()
    report = ExportReport(
        weight_kg=weight,
        age_estimate=estimate_age(weight),
        generated_at=now,
        file_name=export_file_name(weight, now),
    )
    for row in results:
        if row.type is MedicationType.EMERGENCY:
            report.emergency_rows.append(_report_row(row))
        else:
            report.prrt_rows.append(_report_row(row))
    return report
