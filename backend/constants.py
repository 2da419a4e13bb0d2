import os
from enum import Enum

VERSION = "1.0.0"


class MedicationType(Enum):
    """Partitions of the medication table."""
    EMERGENCY = "emergency"
    PRRT = "prrt"          # Routine / non-emergency protocol medications
    ALL = "all"            # Query-only: emergency followed by prrt


class DOSING_LIMITS:
    # Weight window accepted by the calculator (kg). Lower bound is exclusive.
    MIN_WEIGHT_EXCLUSIVE = 0.0
    MAX_WEIGHT_KG = float(os.environ.get("PEDIADOSE_MAX_WEIGHT_KG", "200"))

    # Decimal places used for display_volume and total dose strings
    DECIMAL_PRECISION = int(os.environ.get("PEDIADOSE_DECIMAL_PRECISION", "2"))


class EQUATION_SYMBOLS:
    WEIGHT = "W"  # Patient weight in kg
    DOSE = "D"    # Clinician-supplied secondary dose
