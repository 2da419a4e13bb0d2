"""
PediaDose: Medication Reference Table
=====================================
The two fixed medication partitions (emergency, prrt) and the query helpers
used by the calculator and the presentation layer.

The table is built once at import time from literal data and is never
mutated: records are frozen dataclasses held in tuples.
"""

from typing import Iterable, Optional, Sequence, Tuple, Union

from constants import MedicationType, EQUATION_SYMBOLS
from models import MedicationRecord, DatabaseStats, ConfigurationError

_E = MedicationType.EMERGENCY
_P = MedicationType.PRRT


def _med(name, display_concentration, concentration_per_ml, equation, min_ml, max_ml,
         route, category, notes, type, requires_dose_input=False, dose_unit="mg"):
    return MedicationRecord(
        name=name,
        display_concentration=display_concentration,
        concentration_per_ml=concentration_per_ml,
        equation=equation,
        min_volume_ml=min_ml,
        max_volume_ml=max_ml,
        route=route,
        category=category,
        notes=notes,
        type=type,
        requires_dose_input=requires_dose_input,
        dose_unit=dose_unit,
    )


# --- 1. EMERGENCY MEDICATIONS ---

EMERGENCY_MEDICATIONS: Tuple[MedicationRecord, ...] = (
    # Epinephrine
    _med("Epinephrine 1:10,000", "0.1 mg/mL", 0.1, "0.1 * W", 0, 10, "IV/IO", "Cardiac",
         "Cardiac arrest, symptomatic bradycardia", _E),
    _med("Epinephrine 1:1,000", "1 mg/mL", 1.0, "0.1 * W", 0, 2.5, "ET", "Cardiac",
         "Endotracheal administration", _E),

    # Atropine (IV)
    _med("Atropine 1 mg/10 ml", "0.1 mg/mL", 0.1, "0.2 * W", 1, 5, "IV", "Cardiac",
         "Minimum dose 1 mL, maximum dose 5 mL", _E),
    _med("Atropine 0.5 mg/ml", "0.5 mg/mL", 0.5, "0.04 * W", 0.2, 1, "IV", "Cardiac",
         "Minimum dose 0.2 mL, maximum dose 1 mL", _E),
    _med("Atropine 0.6 mg/ml", "0.6 mg/mL", 0.6, "0.033 * W", 0.167, 0.833, "IV", "Cardiac",
         "Minimum dose 0.167 mL, maximum dose 0.833 mL", _E),

    # Atropine (ET)
    _med("Atropine ET 1 mg/10 ml", "0.1 mg/mL", 0.1, "0.6 * W", 0, 20, "ET", "Cardiac",
         "Endotracheal administration", _E),
    _med("Atropine ET 0.5 mg/ml", "0.5 mg/mL", 0.5, "0.12 * W", 0, 4, "ET", "Cardiac",
         "Endotracheal administration", _E),
    _med("Atropine ET 0.6 mg/ml", "0.6 mg/mL", 0.6, "0.1 * W", 0, 3.33, "ET", "Cardiac",
         "Endotracheal administration", _E),

    _med("Amiodarone", "50 mg/mL", 50.0, "0.1 * W", 0, 300, "IV", "Cardiac",
         "For refractory VF/VT", _E),
    _med("Adenosine 1st", "3 mg/mL", 3.0, "0.033 * W", 0, 6, "IV", "Cardiac",
         "First dose for SVT, rapid push", _E),
    _med("Adenosine 2nd", "3 mg/mL", 3.0, "0.067 * W", 0, 12, "IV", "Cardiac",
         "Second dose for SVT if needed", _E),
    _med("Calcium", "100 mg/mL", 100.0, "0.2 * W", 0, 20, "IV", "Electrolyte",
         "Calcium gluconate or chloride", _E),
    _med("Flumazenil", "0.1 mg/mL", 0.1, "0.1 * W", 0, 2, "IV", "Antidote",
         "Benzodiazepine reversal, max 2 mL", _E),
    _med("Glucagon", "1 mg/mL", 1.0, "0.1 * W", 0, 1, "IV/IM", "Endocrine",
         "Hypoglycemia, maximum 1 mL", _E),
    _med("Lidocaine IV", "20 mg/mL", 20.0, "0.05 * W", 0, None, "IV", "Cardiac",
         "Ventricular arrhythmias", _E),
    _med("Lidocaine ET", "20 mg/mL", 20.0, "0.1 * W", 0, None, "ET", "Cardiac",
         "Endotracheal administration", _E),
    _med("Naloxone IV", "0.4 mg/mL", 0.4, "0.025 * W", 0, 2, "IV", "Antidote",
         "Opioid reversal, maximum 2 mL", _E),
    _med("Naloxone ET", "0.4 mg/mL", 0.4, "0.05 * W", 0, None, "ET", "Antidote",
         "Endotracheal administration", _E),
    _med("Rocuronium", "10 mg/mL", 10.0, "0.06 * W", 0, None, "IV", "Neuromuscular",
         "Rapid sequence intubation", _E),
    _med("Sodium Bicarbonate", "1 mEq/mL", 1.0, "1.0 * W", 0, None, "IV", "Electrolyte",
         "Metabolic acidosis", _E, dose_unit="mEq"),
    # 0.9% is a percentage label, not a per-mL multiplier: no mass dose.
    _med("Sodium Chloride", "0.9%", None, "20.0 * W", 0, None, "IV", "Fluid",
         "Volume expansion, bolus", _E),
)


# --- 2. PRRT MEDICATIONS ---

PRRT_MEDICATIONS: Tuple[MedicationRecord, ...] = (
    _med("Epinephrine (IM)", "1 mg/mL", 1.0, "0.01 * W", 0, 0.5, "IM", "Allergy",
         "Anaphylaxis, severe allergic reaction", _P),
    _med("Hydrocortisone Na succinate", "50 mg/mL", 50.0, "D / 50", 0, 2, "IV", "Steroid",
         "Requires dose input, max 100 mg/dose", _P, requires_dose_input=True),
    _med("Dexamethasone", "4 mg/mL", 4.0, "(0.6 * W) / 4", 0, 4, "IV/IM", "Steroid",
         "Croup, inflammation, max 16 mg", _P),
    _med("Methylprednisolone", "62.5 mg/mL", 62.5, "(1 * W) / 62.5", 0, None, "IV", "Steroid",
         "1-2 mg/kg, varies per protocol", _P),
    _med("Acetaminophen", "10 mg/mL", 10.0, "(15 * W) / 10", 0, 7.5, "PO/PR", "Analgesic",
         "Fever and pain management, 15 mg/kg", _P),
    _med("Diphenhydramine", "50 mg/mL", 50.0, "(1 * W) / 50", 0, 1, "IV/IM", "Antihistamine",
         "Allergic reactions, 1-2 mg/kg, max 50 mg", _P),
    _med("Albuterol", "2 mg/mL", 2.0, "(0.15 * W) / 2", 0, 2.5, "Nebulized", "Respiratory",
         "Bronchospasm, max 5 mg", _P),
    _med("Racepinephrine", "22.5 mg/mL", 22.5, "0.05 * W", 0, None, "Nebulized", "Respiratory",
         "0.05-0.1 mL/kg, per clinical order", _P),
    _med("Ipratropium", "0.25 mg/mL", 0.25, "D * 4", 0, 2, "Nebulized", "Respiratory",
         "Requires dose input, max 0.5 mg", _P, requires_dose_input=True),
    _med("Flumazenil", "0.1 mg/mL", 0.1, "(0.01 * W) / 0.1", 0, 2, "IV", "Antidote",
         "Benzodiazepine reversal, max 0.2 mg", _P),
    _med("Naloxone", "0.4 mg/mL", 0.4, "(0.1 * W) / 0.4", 0, 5, "IV", "Antidote",
         "Opioid reversal, max 2 mg", _P),
    _med("Levetiracetam", "100 mg/mL", 100.0, "(20 * W) / 100", 0, 45, "IV", "Anticonvulsant",
         "20-60 mg/kg, max 4500 mg", _P),
    _med("Glucagon", "1 mg/mL", 1.0, "(0.02 * W) / 1", 0, 1, "IV/IM", "Endocrine",
         "Hypoglycemia, 0.02-0.03 mg/kg, max 1 mg", _P),
    _med("Furosemide", "10 mg/mL", 10.0, "(1 * W) / 10", 0, 4, "IV", "Diuretic",
         "Edema, hypertension, max 40 mg", _P),
)

ALL_MEDICATIONS: Tuple[MedicationRecord, ...] = EMERGENCY_MEDICATIONS + PRRT_MEDICATIONS


# --- 3. QUERIES ---

def as_type(type: Union[MedicationType, str]) -> MedicationType:
    if isinstance(type, MedicationType):
        return type
    try:
        return MedicationType(str(type).lower())
    except ValueError:
        raise ValueError(f"Unknown medication type: {type!r}") from None


def get_by_type(type: Union[MedicationType, str] = MedicationType.ALL) -> Tuple[MedicationRecord, ...]:
    """Records of one partition in declaration order; ALL is emergency then prrt."""
    partition = as_type(type)
    if partition is MedicationType.EMERGENCY:
        return EMERGENCY_MEDICATIONS
    if partition is MedicationType.PRRT:
        return PRRT_MEDICATIONS
    return ALL_MEDICATIONS


def search(query: str) -> Tuple[MedicationRecord, ...]:
    """Case-insensitive substring match on name, category, route or notes."""
    needle = (query or "").lower()
    return tuple(
        med for med in ALL_MEDICATIONS
        if needle in med.name.lower()
        or needle in med.category.lower()
        or needle in med.route.lower()
        or needle in med.notes.lower()
    )


def filter_by_category(category: str) -> Tuple[MedicationRecord, ...]:
    wanted = (category or "").lower()
    return tuple(med for med in ALL_MEDICATIONS if med.category.lower() == wanted)


def filter_by_route(route: str) -> Tuple[MedicationRecord, ...]:
    wanted = (route or "").lower()
    return tuple(med for med in ALL_MEDICATIONS if wanted in med.route.lower())


def requiring_dose_input() -> Tuple[MedicationRecord, ...]:
    return tuple(med for med in ALL_MEDICATIONS if med.requires_dose_input)


def find(name: str, type: Union[MedicationType, str] = MedicationType.ALL) -> Optional[MedicationRecord]:
    """First record with this exact (case-insensitive) name in the partition."""
    wanted = name.lower()
    for med in get_by_type(type):
        if med.name.lower() == wanted:
            return med
    return None


def stats() -> DatabaseStats:
    return DatabaseStats(
        total=len(ALL_MEDICATIONS),
        emergency_count=len(EMERGENCY_MEDICATIONS),
        prrt_count=len(PRRT_MEDICATIONS),
        distinct_categories=frozenset(med.category for med in ALL_MEDICATIONS),
        distinct_routes=frozenset(med.route for med in ALL_MEDICATIONS),
    )


def validate_table(records: Optional[Iterable[MedicationRecord]] = None) -> None:
    """
    Checks the authoring rules of the table.
    Raises ConfigurationError on the first violation.
    """
    table: Sequence[MedicationRecord] = tuple(ALL_MEDICATIONS if records is None else records)
    seen = set()
    for med in table:
        label = f"{med.name} ({med.type.value})"
        if med.key in seen:
            raise ConfigurationError(f"Duplicate record {label}")
        seen.add(med.key)

        symbols = med.equation_symbols
        if med.requires_dose_input:
            if EQUATION_SYMBOLS.DOSE not in symbols:
                raise ConfigurationError(f"{label} requires dose input but its equation has no D")
        else:
            if EQUATION_SYMBOLS.DOSE in symbols:
                raise ConfigurationError(f"{label} uses D without requiring dose input")
            if EQUATION_SYMBOLS.WEIGHT not in symbols:
                raise ConfigurationError(f"{label} equation does not reference W")

        if (med.min_volume_ml is not None and med.max_volume_ml is not None
                and med.min_volume_ml > med.max_volume_ml):
            raise ConfigurationError(
                f"{label} min volume {med.min_volume_ml} exceeds max {med.max_volume_ml}"
            )
