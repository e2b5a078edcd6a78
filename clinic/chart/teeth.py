"""FDI tooth numbering: validation, description and chart lookups.

FDI numbers are two digits: quadrant then position from the midline.
Quadrants 1-4 are permanent teeth (upper right, upper left, lower left,
lower right); 5-8 are the same quadrants for deciduous teeth.
"""
from collections import Counter
from typing import Dict, Iterable, List, Optional, Union

from clinic.chart.constants import ALL_TEETH, DECIDUOUS_ORDER
from clinic.models import Jaw, PatientTreatment, TreatmentStatus

VALID_TEETH = frozenset(ALL_TEETH)
DECIDUOUS_TEETH = frozenset(DECIDUOUS_ORDER)

QUADRANTS = {1: "ur", 2: "ul", 3: "ll", 4: "lr"}

QUADRANT_NAMES_EN = {
    "ur": "Upper Right",
    "ul": "Upper Left",
    "ll": "Lower Left",
    "lr": "Lower Right",
}

QUADRANT_NAMES_AR = {
    "ur": "علوي أيمن",
    "ul": "علوي أيسر",
    "ll": "سفلي أيسر",
    "lr": "سفلي أيمن",
}

# Position from the midline -> (type, English name, Arabic name)
PERMANENT_POSITIONS = {
    1: ("incisor", "Central Incisor", "قاطع مركزي"),
    2: ("incisor", "Lateral Incisor", "قاطع جانبي"),
    3: ("canine", "Canine", "ناب"),
    4: ("premolar", "First Premolar", "ضاحك أول"),
    5: ("premolar", "Second Premolar", "ضاحك ثاني"),
    6: ("molar", "First Molar", "رحى أولى"),
    7: ("molar", "Second Molar", "رحى ثانية"),
    8: ("molar", "Third Molar", "رحى ثالثة"),
}

DECIDUOUS_POSITIONS = {
    1: ("incisor", "Central Incisor", "قاطع مركزي لبني"),
    2: ("incisor", "Lateral Incisor", "قاطع جانبي لبني"),
    3: ("canine", "Canine", "ناب لبني"),
    4: ("molar", "First Molar", "رحى أولى لبنية"),
    5: ("molar", "Second Molar", "رحى ثانية لبنية"),
}

JAW_LABELS_AR = {
    Jaw.UPPER: "علوي",
    Jaw.LOWER: "سفلي",
    Jaw.BOTH: "فكين",
}


def parse_tooth_number(value: Union[int, str, None]) -> Optional[int]:
    """Leading integer of a form value, or None when it has none."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    digits = ""
    for char in str(value).strip():
        if not char.isdigit():
            break
        digits += char
    return int(digits) if digits else None


def is_valid_tooth_number(value: Union[int, str, None]) -> bool:
    """True for permanent FDI numbers 11-18, 21-28, 31-38, 41-48."""
    return parse_tooth_number(value) in VALID_TEETH


def is_deciduous(tooth: int) -> bool:
    return tooth in DECIDUOUS_TEETH


def _split(tooth: int):
    if tooth not in VALID_TEETH and tooth not in DECIDUOUS_TEETH:
        raise ValueError(f"Not an FDI tooth number: {tooth}")
    quadrant, position = divmod(tooth, 10)
    if quadrant > 4:
        quadrant -= 4
    return QUADRANTS[quadrant], position


def tooth_quadrant(tooth: int) -> str:
    """Quadrant code: ur, ul, ll or lr."""
    return _split(tooth)[0]


def tooth_type(tooth: int) -> str:
    """incisor, canine, premolar or molar."""
    _, position = _split(tooth)
    positions = DECIDUOUS_POSITIONS if is_deciduous(tooth) else PERMANENT_POSITIONS
    return positions[position][0]


def tooth_name(tooth: int) -> str:
    """English anatomical name, e.g. 'Upper Right First Molar'."""
    quadrant, position = _split(tooth)
    if is_deciduous(tooth):
        return f"{QUADRANT_NAMES_EN[quadrant]} {DECIDUOUS_POSITIONS[position][1]} (Primary)"
    return f"{QUADRANT_NAMES_EN[quadrant]} {PERMANENT_POSITIONS[position][1]}"


def tooth_name_ar(tooth: int) -> str:
    """Arabic anatomical name shown in chart tooltips."""
    quadrant, position = _split(tooth)
    positions = DECIDUOUS_POSITIONS if is_deciduous(tooth) else PERMANENT_POSITIONS
    return f"{positions[position][2]} {QUADRANT_NAMES_AR[quadrant]}"


def tooth_treatments(
    treatments: Iterable[PatientTreatment],
    tooth: int,
    status: Optional[TreatmentStatus] = None
) -> List[PatientTreatment]:
    """Treatments on one tooth, optionally restricted to a chart status tab."""
    return [
        t for t in treatments
        if t.tooth_number == tooth and (status is None or t.status == status)
    ]


def chart_fill(
    treatments: Iterable[PatientTreatment],
    status: TreatmentStatus
) -> Dict[int, TreatmentStatus]:
    """Teeth that should be highlighted on the given status tab."""
    return {
        t.tooth_number: status
        for t in treatments
        if t.tooth_number is not None and t.status == status
    }


def jaw_only_treatments(treatments: Iterable[PatientTreatment]) -> List[PatientTreatment]:
    """Treatments attached to a whole jaw rather than a tooth."""
    return [t for t in treatments if t.tooth_number is None and t.jaw is not None]


def jaw_counts(
    treatments: Iterable[PatientTreatment],
    status: Optional[TreatmentStatus] = None
) -> Dict[Jaw, int]:
    """
    Count jaw-only treatments per jaw.

    Returns:
        Count for each of upper, lower and both (zero when absent)
    """
    counter = Counter(
        t.jaw for t in jaw_only_treatments(treatments)
        if status is None or t.status == status
    )
    return {jaw: counter.get(jaw, 0) for jaw in Jaw}


def location_label(treatment: PatientTreatment) -> str:
    """Tooth number, or the Arabic jaw label, as listed in treatment tables."""
    if treatment.tooth_number is not None:
        return str(treatment.tooth_number)
    if treatment.jaw is not None:
        return JAW_LABELS_AR[treatment.jaw]
    return "-"
