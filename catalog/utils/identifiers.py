import hashlib
import re
from datetime import datetime
from typing import Any


PRODUCT_CODE_PATTERN = re.compile(r"^[A-Z0-9]{2,}-\d{2}-\d{4,}$")
EAN13_PATTERN = re.compile(r"^\d{13}$")

# sha1 hex letters are folded onto digits so the digest can seed a GTIN body
_HEX_TO_DIGIT = str.maketrans("abcdef", "012345")


def upper(value: Any) -> str:
    return "" if value is None else str(value).upper()


def alnum(value: Any) -> str:
    """Uppercase and drop everything that is not A-Z or 0-9."""
    return re.sub(r"[^A-Z0-9]", "", upper(value))


def pad4(n: int) -> str:
    return str(n).zfill(4)


def category_prefix(seed: Any) -> str:
    return alnum(seed)[:3] or "GEN"


def color_prefix(seed: Any) -> str:
    return alnum(seed)[:3] or "NOC"


def year2(now: datetime) -> str:
    return now.strftime("%y")


def yymm(now: datetime) -> str:
    return now.strftime("%y%m")


def yyyymmdd(now: datetime) -> str:
    return now.strftime("%Y%m%d")


def is_product_code(value: Any) -> bool:
    return isinstance(value, str) and bool(PRODUCT_CODE_PATTERN.match(value))


def ean13_check_digit(body: str) -> int:
    """
    Check digit for a 12-digit EAN body.

    Digits are weighted 1, 3, 1, 3, ... from the left.
    """
    total = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(body))
    return (10 - total % 10) % 10


def is_ean13(value: Any) -> bool:
    """True for a 13-digit string whose last digit is the correct check digit."""
    if value is None or isinstance(value, bool):
        return False
    text = str(value)
    if not EAN13_PATTERN.match(text):
        return False
    return ean13_check_digit(text[:12]) == int(text[12])


def make_ean13(seed: Any) -> str:
    """
    Deterministic EAN-13 from an arbitrary seed string.

    The body is "20" (in-store GTIN range) followed by the first ten digits of
    the seed's sha1 digest with hex letters a-f folded onto 0-5.
    """
    digest = hashlib.sha1(str(seed).encode("utf-8")).hexdigest()
    body = "20" + digest.translate(_HEX_TO_DIGIT)[:10]
    return body + str(ean13_check_digit(body))


def complete_ean13(raw: Any) -> str:
    """
    Barcode input mask: keep digits only (at most 13) and append the
    check digit once exactly 12 digits have been entered.
    """
    digits = re.sub(r"\D", "", "" if raw is None else str(raw))[:13]
    if len(digits) == 12:
        digits += str(ean13_check_digit(digits))
    return digits


def mask_code(value: Any) -> str:
    """Input mask for product codes and SKUs: A-Z, 0-9 and single hyphens."""
    masked = re.sub(r"[^A-Z0-9-]", "", upper(value))
    return re.sub(r"-{2,}", "-", masked)


def variant_sku(base_sku: str, color: Any) -> str:
    return f"{base_sku}-{color_prefix(color)}"


def variant_size_sku(base_sku: str, color: Any, size_name: Any) -> str:
    """
    Per-size SKU: BASE-COL-SIZE, e.g. "TSH-0001-RED-M".
    """
    size = alnum(size_name)
    sku = variant_sku(base_sku, color)
    return f"{sku}-{size}" if size else sku
