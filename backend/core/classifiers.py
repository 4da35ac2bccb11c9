"""
classifiers.py — Business rules driven by free-text class, term and report
type names.

Schools type these names by hand, so each rule lists the forms it accepts
and is kept here, away from report assembly, where it can be tested on its
own.
"""

import re
from typing import Optional

from core.models import LOWER, UPPER

# ── Report types ────────────────────────────────────────────────────

REPORT_CA = "CA"
REPORT_BOT = "BOT"
REPORT_MID = "MID"
REPORT_EOT = "EOT"
REPORT_ALL = "ALL"
REPORT_INTEGRATED = "INTEGRATED"

REPORT_TYPES = (REPORT_CA, REPORT_BOT, REPORT_MID, REPORT_EOT, REPORT_ALL, REPORT_INTEGRATED)

REPORT_TYPE_ALIASES = {
    "continuousassessmentca": REPORT_CA,
    "continuousassessment": REPORT_CA,
    "ca": REPORT_CA,
    "endoftermeot": REPORT_EOT,
    "endofterm": REPORT_EOT,
    "eot": REPORT_EOT,
    "midterm": REPORT_MID,
    "mid": REPORT_MID,
    "beginningoftermbot": REPORT_BOT,
    "beginningofterm": REPORT_BOT,
    "bot": REPORT_BOT,
    "all": REPORT_ALL,
    "integrated": REPORT_INTEGRATED,
}


def parse_report_type(raw) -> Optional[str]:
    """Map a free-text report type onto REPORT_TYPES, None if unrecognised."""
    if raw is None:
        return None
    key = re.sub(r"[^a-zA-Z]", "", str(raw)).lower()
    return REPORT_TYPE_ALIASES.get(key)


def normalize_report_type(raw) -> str:
    """Like parse_report_type, but anything unrecognised means ALL."""
    return parse_report_type(raw) or REPORT_ALL


# ── Primary level ───────────────────────────────────────────────────

_LOWER_PRIMARY_NUMBER = re.compile(
    r"primary\s+(one|two|three|1|2|3)\s*(east|west|south|north|central|blue|green|red|yellow)?",
    re.IGNORECASE,
)

_NUMBER_WORDS = {"one": 1, "two": 2, "three": 3}

LOWER_PRIMARY_KEYWORDS = (
    "baby", "infant", "nursery", "middle", "pre-unit", "top", "kindergarten", "kg",
)
LOWER_PRIMARY_CODES = ("p1", "p2", "p3")


def is_lower_primary(class_name: Optional[str]) -> bool:
    """
    Nursery classes and Primary One to Three are lower primary.

    Accepted forms: "Primary One", "Primary 2 East", "P3", "Baby Class",
    "Middle", "Top Class", "KG 1", "Pre-Unit", "Nursery".
    """
    if not class_name:
        return False
    name = class_name.lower()

    match = _LOWER_PRIMARY_NUMBER.search(name)
    if match:
        token = match.group(1).lower()
        number = _NUMBER_WORDS.get(token) or int(token)
        return 1 <= number <= 3

    if any(word in name for word in LOWER_PRIMARY_KEYWORDS):
        return True
    return any(code in name for code in LOWER_PRIMARY_CODES)


def primary_level(class_name: Optional[str]) -> str:
    return LOWER if is_lower_primary(class_name) else UPPER


# ── Terms ───────────────────────────────────────────────────────────

TERM_THREE_FORMS = {"term 3", "term three", "3", "three"}


def is_term_three(term: Optional[str]) -> bool:
    """Accepted forms: "Term 3", "term three", "3", "Three"."""
    if term is None:
        return False
    normalized = " ".join(str(term).lower().split())
    return normalized in TERM_THREE_FORMS


# ── Promotion ───────────────────────────────────────────────────────

_PRIMARY_NUMBER = re.compile(
    r"(?:primary|p\.?|std\.?|class\s*)?(one|two|three|four|five|six|seven|1|2|3|4|5|6|7)",
    re.IGNORECASE,
)

NEXT_PRIMARY_CLASS = {
    "one": "Primary Two", "1": "Primary Two",
    "two": "Primary Three", "2": "Primary Three",
    "three": "Primary Four", "3": "Primary Four",
    "four": "Primary Five", "4": "Primary Five",
    "five": "Primary Six", "5": "Primary Six",
    "six": "Primary Seven", "6": "Primary Seven",
    "seven": "Completed Primary", "7": "Completed Primary",
}

NEXT_ROMAN_CLASS = {
    "i": "II",
    "ii": "III",
    "iii": "IV",
    "iv": "V",
    "v": "VI",
    "vi": "VII",
    "vii": "Completed Primary",
}

DEFAULT_NEXT_CLASS = "the next class"


def get_next_class(class_name: Optional[str]) -> str:
    """Class a pupil is promoted into at the end of the year."""
    if not class_name:
        return DEFAULT_NEXT_CLASS
    name = class_name.strip().lower()

    if "baby" in name or "nursery" in name:
        return "Middle Class"
    if "middle" in name:
        return "Top Class"
    if "top" in name:
        return "Primary One"

    match = _PRIMARY_NUMBER.search(name)
    if match:
        return NEXT_PRIMARY_CLASS.get(match.group(1).lower(), DEFAULT_NEXT_CLASS)

    return NEXT_ROMAN_CLASS.get(name, DEFAULT_NEXT_CLASS)


# ── Titles ──────────────────────────────────────────────────────────

PERIOD_TITLES = {
    REPORT_BOT: "BEGINNING OF TERM",
    REPORT_MID: "MID TERM",
    REPORT_EOT: "END OF TERM",
    REPORT_CA: "CONTINUOUS ASSESSMENT",
}


def get_report_title(report_type: Optional[str], lower: bool) -> str:
    level = "LOWER" if lower else "UPPER"
    if report_type == REPORT_INTEGRATED or (report_type == REPORT_ALL and lower):
        return f"{level} PRIMARY INTEGRATED TERMLY ASSESSMENT REPORT"
    if report_type == REPORT_ALL:
        return f"{level} PRIMARY TERMLY PROGRESS REPORT"
    return f"{level} PRIMARY {PERIOD_TITLES.get(report_type, 'TERMLY')} REPORT"
