import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SizeSystem(str, Enum):
    ALPHA = "Alpha (XS-XXL: T-shirts, shirts, pants)"
    NUMERIC_SINGLE = "Numeric (single: collar/waist, e.g. 15.5, 32)"
    WAIST_LENGTH = "Numeric (waist x length: e.g. 32x30)"
    SHOE = "Shoe size (e.g. 42, 8, UK 9)"
    KIDS = "Kids age (e.g. 2-3Y, 4-5Y)"
    FREE = "Free / one size"


# Matched by prefix so slightly reworded labels still resolve
_LABEL_PREFIXES = (
    ("Alpha", SizeSystem.ALPHA),
    ("Numeric (single", SizeSystem.NUMERIC_SINGLE),
    ("Numeric (waist x length", SizeSystem.WAIST_LENGTH),
    ("Shoe size", SizeSystem.SHOE),
    ("Kids age", SizeSystem.KIDS),
    ("Free / one", SizeSystem.FREE),
)

_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)")
_FIRST_NUMBER = re.compile(r"[\d.,]+")
_WAIST_LENGTH_SPLIT = re.compile(r"[X×]")

# Keys a size entry may carry its label under, most specific first
SIZE_NAME_KEYS = ("size_name", "size", "sizeName", "size_code")


def normalize_size_system_label(value: Any) -> str:
    """Resolve free-form input to one of the canonical size system labels."""
    if not value:
        return SizeSystem.ALPHA.value
    text = str(value).strip()
    for prefix, system in _LABEL_PREFIXES:
        if text.startswith(prefix):
            return system.value
    return SizeSystem.ALPHA.value


def parse_numeric(value: Any) -> Optional[float]:
    """Parse the leading number of a value; a comma is accepted as decimal separator."""
    if value is None or value == "":
        return None
    match = _LEADING_FLOAT.match(str(value).replace(",", ".", 1))
    if not match:
        return None
    return float(match.group(0))


def parse_size_for_system(size_system: Any, size_name: Any) -> Dict[str, Any]:
    """
    Numeric breakdown of a size label for analytics and filtering.

    Returns a dict with ``size_system``, ``primary_value`` and ``secondary_value``.
    """
    system = normalize_size_system_label(size_system)
    raw = str(size_name or "").strip()
    parsed = {"size_system": system, "primary_value": None, "secondary_value": None}

    if not raw:
        return parsed

    if system == SizeSystem.NUMERIC_SINGLE.value:
        parsed["primary_value"] = parse_numeric(raw)
    elif system == SizeSystem.WAIST_LENGTH.value:
        parts = _WAIST_LENGTH_SPLIT.split(raw.upper())
        parsed["primary_value"] = parse_numeric(parts[0])
        parsed["secondary_value"] = parse_numeric(parts[1]) if len(parts) > 1 else None
    elif system == SizeSystem.SHOE.value:
        match = _FIRST_NUMBER.search(raw)
        parsed["primary_value"] = parse_numeric(match.group(0)) if match else None

    # Alpha, kids age and free size carry no numeric decomposition
    return parsed


def normalize_size_name(entry: Any) -> str:
    """Uppercased size label of a size stock entry, or "" when it has none."""
    if not isinstance(entry, dict):
        return ""
    for key in SIZE_NAME_KEYS:
        raw = entry.get(key)
        if raw:
            return str(raw).strip().upper()
    return ""


def split_size_csv(value: Any) -> Tuple[List[str], List[str]]:
    """
    Split a legacy comma-separated size string.

    Returns (unique normalized sizes in first-seen order, duplicates that were dropped).
    """
    if not isinstance(value, str):
        return [], []
    unique: List[str] = []
    duplicates: List[str] = []
    for part in value.split(","):
        norm = part.strip().upper()
        if not norm:
            continue
        if norm in unique:
            duplicates.append(norm)
            continue
        unique.append(norm)
    return unique, duplicates
