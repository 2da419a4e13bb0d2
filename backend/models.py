"""
PediaDose: Data Dictionary
==========================
Defines the medication table entries, the per-call calculation results and
the error taxonomy shared by the evaluator, calculator and API layer.

NO CALCULATION LOGIC is implemented here.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from constants import MedicationType, EQUATION_SYMBOLS


class EvaluationError(ValueError):
    """Raised when an equation cannot be evaluated as plain arithmetic."""
    pass


class ConfigurationError(ValueError):
    """Raised when the static medication table breaks its own invariants."""
    pass


# --- 1. ENUMS ---

class ErrorKind(Enum):
    INVALID_WEIGHT = "invalid_weight"          # Missing, non-finite, <=0 or above max
    MISSING_DOSE_INPUT = "missing_dose_input"  # Record needs D, caller gave none
    EVALUATION_ERROR = "evaluation_error"      # Malformed equation or division by zero
    INVALID_PRECISION = "invalid_precision"    # Negative or non-integer decimal places


# --- 2. REFERENCE DATA (Loaded once, never mutated) ---

@dataclass(frozen=True)
class MedicationRecord:
    """
    One row of the medication reference table.

    The source data mixed unit-bearing labels ("0.1 mg/mL") with bare numbers
    ("0.1") and "0.9%" for saline. Here the label and the multiplier are
    separate fields: display_concentration is shown as-is, and
    concentration_per_ml (in dose_unit per mL) drives dose derivation.
    """
    name: str
    display_concentration: str
    concentration_per_ml: Optional[float]
    equation: str
    min_volume_ml: Optional[float]
    max_volume_ml: Optional[float]
    route: str
    category: str
    notes: str
    type: MedicationType
    requires_dose_input: bool = False
    dose_unit: str = "mg"

    @property
    def key(self) -> Tuple[str, str]:
        """Identity of the record: names repeat across partitions."""
        return (self.name, self.type.value)

    @property
    def numeric_concentration(self) -> Optional[float]:
        """Concentration usable as a multiplier, or None if not derivable."""
        value = self.concentration_per_ml
        if value is None or not math.isfinite(value) or value <= 0:
            return None
        return float(value)

    @property
    def equation_symbols(self) -> FrozenSet[str]:
        return frozenset(
            s for s in (EQUATION_SYMBOLS.WEIGHT, EQUATION_SYMBOLS.DOSE)
            if s in self.equation
        )


# --- 3. OUTPUT LAYER (Ephemeral, owned by the caller) ---

@dataclass
class CalculationResult:
    """
    Outcome of one calculate_volume call.
    Either the numeric fields are populated or error is, never both.
    """
    volume_ml: Optional[float] = None
    dose_mass: Optional[float] = None
    display_volume: Optional[str] = None
    equation_used: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "CalculationResult":
        return cls(error=message, error_kind=kind)

    def to_dict(self) -> dict:
        if not self.success:
            return {"error": self.error, "error_kind": self.error_kind.value}
        return {
            "volume_ml": self.volume_ml,
            "dose_mass": self.dose_mass,
            "display_volume": self.display_volume,
            "equation_used": self.equation_used,
        }


@dataclass
class CalculatedMedication:
    """A table record paired with its result, as returned by calculate_all."""
    record: MedicationRecord
    result: CalculationResult
    total_dose: str = "Error"  # "0.10 mg" / "200.00 mL" / "Error"

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def route(self) -> str:
        return self.record.route

    @property
    def category(self) -> str:
        return self.record.category

    @property
    def notes(self) -> str:
        return self.record.notes

    @property
    def type(self) -> MedicationType:
        return self.record.type

    @property
    def display_volume(self) -> str:
        return self.result.display_volume if self.result.success else "Error"

    def to_dict(self) -> dict:
        row = {
            "name": self.record.name,
            "type": self.record.type.value,
            "route": self.record.route,
            "category": self.record.category,
            "notes": self.record.notes,
            "concentration": self.record.display_concentration,
            "display_volume": self.display_volume,
            "total_dose": self.total_dose,
        }
        row.update(self.result.to_dict())
        return row


@dataclass(frozen=True)
class DatabaseStats:
    total: int
    emergency_count: int
    prrt_count: int
    distinct_categories: FrozenSet[str] = field(default_factory=frozenset)
    distinct_routes: FrozenSet[str] = field(default_factory=frozenset)
    types: Tuple[str, ...] = (MedicationType.EMERGENCY.value, MedicationType.PRRT.value)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "emergency_count": self.emergency_count,
            "prrt_count": self.prrt_count,
            "distinct_categories": sorted(self.distinct_categories),
            "distinct_routes": sorted(self.distinct_routes),
            "types": list(self.types),
        }
