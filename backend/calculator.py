"""
PediaDose: Dose Calculator
==========================
Table lookup -> equation evaluation -> clamping -> dose derivation.

Every failure is carried on the returned CalculationResult so a batch over
the whole table survives a single bad record.
"""

import logging
import math
from typing import Iterable, List, Optional, Union

import medications
from constants import DOSING_LIMITS, EQUATION_SYMBOLS, MedicationType
from evaluator import evaluate_equation, substitute, format_literal
from models import (
    CalculatedMedication,
    CalculationResult,
    ErrorKind,
    EvaluationError,
    MedicationRecord,
)

logger = logging.getLogger("pediadose.calculator")

SORT_KEYS = ("name", "route", "category", "type", "volume", "dose")


def _resolve_precision(precision: Optional[int]) -> Optional[int]:
    """Decimal places to display, or None when precision is not a non-negative int."""
    if precision is None:
        return DOSING_LIMITS.DECIMAL_PRECISION
    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
        return None
    return precision


def _is_valid_weight(weight, max_weight: float) -> bool:
    if isinstance(weight, bool) or not isinstance(weight, (int, float)):
        return False
    return math.isfinite(weight) and DOSING_LIMITS.MIN_WEIGHT_EXCLUSIVE < weight <= max_weight


def clamp_volume(volume: float, min_ml: Optional[float], max_ml: Optional[float]) -> float:
    """
    Applies min then max. With min > max the result pins to max,
    since max is applied last.
    """
    if min_ml is not None:
        volume = max(volume, min_ml)
    if max_ml is not None:
        volume = min(volume, max_ml)
    return volume


def calculate_volume(record: MedicationRecord, weight: float,
                     custom_dose: Optional[float] = None,
                     precision: Optional[int] = None,
                     max_weight: Optional[float] = None) -> CalculationResult:
    """
    Computes the administered volume (mL) of one medication for a patient weight.

    Args:
        record: Table entry to calculate
        weight: Patient weight in kg, 0 < weight <= max_weight
        custom_dose: Value bound to D; required when record.requires_dose_input
        precision: Decimal places of display_volume (default DOSING_LIMITS.DECIMAL_PRECISION)
        max_weight: Upper weight bound (default DOSING_LIMITS.MAX_WEIGHT_KG)

    Returns:
        CalculationResult with either numeric fields or an error, never both.
    """
    places = _resolve_precision(precision)
    if places is None:
        return CalculationResult.failure(
            ErrorKind.INVALID_PRECISION,
            f"Invalid precision: {precision!r}. Precision must be a non-negative integer.",
        )
    limit = DOSING_LIMITS.MAX_WEIGHT_KG if max_weight is None else max_weight

    # 1. Weight window
    if not _is_valid_weight(weight, limit):
        return CalculationResult.failure(
            ErrorKind.INVALID_WEIGHT,
            f"Invalid weight value: {weight!r}. Weight must be greater than 0 and at most {format_literal(limit)} kg.",
        )

    # 2. Secondary dose
    if record.requires_dose_input and custom_dose is None:
        return CalculationResult.failure(
            ErrorKind.MISSING_DOSE_INPUT, f"Dose input required for {record.name}"
        )

    try:
        # 3. Evaluate
        volume = evaluate_equation(record.equation, weight, custom_dose)

        # 4. Clamp
        volume = clamp_volume(volume, record.min_volume_ml, record.max_volume_ml)

        # 5. Mass dose, only where a per-mL concentration exists
        concentration = record.numeric_concentration
        dose_mass = volume * concentration if concentration is not None else None

        bindings = {EQUATION_SYMBOLS.WEIGHT: float(weight)}
        if custom_dose is not None and EQUATION_SYMBOLS.DOSE in record.equation_symbols:
            bindings[EQUATION_SYMBOLS.DOSE] = float(custom_dose)

        return CalculationResult(
            volume_ml=volume,
            dose_mass=dose_mass,
            display_volume=f"{volume:.{places}f}",
            equation_used=substitute(record.equation, bindings),
        )
    except EvaluationError as e:
        return CalculationResult.failure(ErrorKind.EVALUATION_ERROR, f"Calculation error: {e}")
    except (TypeError, ValueError) as e:
        # Bad clamp bounds or concentration on a hand-built record
        logger.error(f"Malformed medication record {record.name!r}: {e}")
        return CalculationResult.failure(
            ErrorKind.EVALUATION_ERROR, f"Calculation error: malformed record ({e})"
        )


def format_total_dose(record: MedicationRecord, result: CalculationResult,
                      precision: Optional[int] = None) -> str:
    """
    "<mass> <unit>" when a mass dose exists, otherwise "<volume> mL".
    Failed or zero-volume results read "Error".
    """
    if not result.success or not result.volume_ml:
        return "Error"
    places = _resolve_precision(precision)
    if places is None:
        return "Error"
    if result.dose_mass is not None:
        return f"{result.dose_mass:.{places}f} {record.dose_unit}"
    return f"{result.volume_ml:.{places}f} mL"


def _calculate_records(records: Iterable[MedicationRecord], weight: float,
                       precision: Optional[int], max_weight: Optional[float]) -> List[CalculatedMedication]:
    rows: List[CalculatedMedication] = []
    for record in records:
        if record.requires_dose_input:
            continue  # No batch-level dose input exists
        result = calculate_volume(record, weight, precision=precision, max_weight=max_weight)
        if not result.success:
            logger.warning(f"{record.name} ({record.type.value}): {result.error}")
        rows.append(CalculatedMedication(
            record=record,
            result=result,
            total_dose=format_total_dose(record, result, precision),
        ))
    return rows


def calculate_all(type: Union[MedicationType, str], weight: float,
                  precision: Optional[int] = None,
                  max_weight: Optional[float] = None) -> List[CalculatedMedication]:
    """
    Calculates every record of a partition that needs no dose input,
    in table order. Each record gets its own success-or-error result.
    """
    rows = _calculate_records(medications.get_by_type(type), weight, precision, max_weight)
    failed = sum(1 for row in rows if not row.result.success)
    logger.debug(f"calculate_all({type}, {weight}): {len(rows)} rows, {failed} errors")
    return rows


def calculate_everything(weight: float, precision: Optional[int] = None,
                         max_weight: Optional[float] = None) -> List[CalculatedMedication]:
    """Emergency rows followed by PRRT rows, as shown in the results table."""
    return (calculate_all(MedicationType.EMERGENCY, weight, precision, max_weight)
            + calculate_all(MedicationType.PRRT, weight, precision, max_weight))


# --- PRESENTATION HELPERS (over already-computed rows) ---

def filter_results(results: Iterable[CalculatedMedication], query: Optional[str] = None,
                   partition: Union[MedicationType, str] = MedicationType.ALL) -> List[CalculatedMedication]:
    """Partition filter plus case-insensitive search on name, route or category."""
    wanted = medications.as_type(partition)
    needle = (query or "").strip().lower()
    rows = []
    for row in results:
        if wanted is not MedicationType.ALL and row.type is not wanted:
            continue
        if needle and not (needle in row.name.lower()
                           or needle in row.route.lower()
                           or needle in row.category.lower()):
            continue
        rows.append(row)
    return rows


def sort_results(results: Iterable[CalculatedMedication], key: str = "name",
                 reverse: bool = False) -> List[CalculatedMedication]:
    """
    Stable sort by a column. For volume and dose, rows without a value
    always go last regardless of direction.
    """
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; expected one of {', '.join(SORT_KEYS)}")
    rows = list(results)

    if key in ("volume", "dose"):
        attr = "volume_ml" if key == "volume" else "dose_mass"
        present = [row for row in rows if getattr(row.result, attr) is not None]
        missing = [row for row in rows if getattr(row.result, attr) is None]
        present.sort(key=lambda row: getattr(row.result, attr), reverse=reverse)
        return present + missing

    if key == "type":
        return sorted(rows, key=lambda row: row.type.value, reverse=reverse)
    return sorted(rows, key=lambda row: getattr(row, key).lower(), reverse=reverse)
