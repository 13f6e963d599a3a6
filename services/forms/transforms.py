"""
Field Transforms

Functions that turn raw intake values into display strings for both the
HTML and the PDF backends. Each transform is total: malformed input
degrades to a best-effort string or "", never an exception.

Transforms are registered by name and exposed to the built-in HTML
templates as Jinja filters:
    {{ indemnitor.homePhone | phone }}
    {{ defendant.ssn | ssn }}
"""

import logging
import re
from datetime import datetime, date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

# Type alias for transform functions
TransformFunc = Callable[[Any], str]

DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y", "%Y/%m/%d"]


def format_date(value: Any) -> str:
    """
    Format a date as MM/DD/YYYY.

    Examples:
        "2026-01-15" -> "01/15/2026"
        "2026-01-15T08:30:00.000Z" -> "01/15/2026"
        date(2026, 1, 15) -> "01/15/2026"
        "not a date" -> ""
    """
    if value is None:
        return ""

    if isinstance(value, (datetime, date)):
        return value.strftime("%m/%d/%Y")

    text = str(value).strip()
    if not text:
        return ""

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%m/%d/%Y")
        except ValueError:
            continue

    # ISO timestamps from the wizard ("2026-01-15T08:30:00.000Z")
    try:
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
        return parsed.strftime("%m/%d/%Y")
    except ValueError:
        pass

    logger.debug(f"Could not parse date: {value!r}")
    return ""


def format_phone(value: Any) -> str:
    """
    Format a phone number in US format.

    Only an exact 10-digit number is reformatted; anything else comes back
    unchanged so partial or international numbers are not mangled.

    Examples:
        "7137254459" -> "(713) 725-4459"
        "(713) 725-4459" -> "(713) 725-4459"
        "+44 20 7946 0958" -> "+44 20 7946 0958"
    """
    if value is None:
        return ""

    phone_str = str(value)
    digits = re.sub(r'\D', '', phone_str)

    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"

    return phone_str


def format_currency(value: Any) -> str:
    """
    Format a number as US currency.

    Examples:
        500000 -> "$500,000.00"
        "1,234.5" -> "$1,234.50"
        0 / None / "" -> "$0.00"
    """
    if not value:
        return "$0.00"

    try:
        if isinstance(value, str):
            value = value.replace('$', '').replace(',', '').strip()
            if not value:
                return "$0.00"
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        logger.warning(f"Could not format as currency: {value!r}")
        return "$0.00"

    if not amount.is_finite():
        return "$0.00"
    # Half-cents round away from zero: 0.125 -> 0.13
    cents = abs(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 and cents else ""
    return f"{sign}${cents:,.2f}"


def mask_tail(value: Any, keep: int = 4) -> str:
    """
    Mask a sensitive identifier, keeping only its last characters.

    Examples:
        "123-45-6789" -> "XXX-XX-6789"
        "987654321" -> "XXX-XX-4321"
        "" -> ""
        "987654321", keep=0 -> "XXX-XX-"
    """
    if value is None:
        return ""
    text = str(value).strip()
    if not text:
        return ""
    if keep <= 0:
        return "XXX-XX-"
    return f"XXX-XX-{text[-keep:]}"


def format_yes_no(value: Any) -> str:
    """True -> "Yes", False -> "No", anything else -> ""."""
    if value is True:
        return "Yes"
    if value is False:
        return "No"
    return ""


def format_gender(value: Any) -> str:
    """Expand the wizard's single-letter gender codes."""
    return {'M': 'Male', 'F': 'Female'}.get(str(value or '').strip().upper(), "")


def transform_none(value: Any) -> str:
    """No transformation - just convert to string."""
    if value is None:
        return ""
    return str(value)


def full_name(entity: Optional[Mapping[str, Any]], middle: bool = False) -> str:
    """
    Join first (and optionally middle) and last name, skipping blanks.

    Examples:
        {"firstName": "Jane", "lastName": "Doe"} -> "Jane Doe"
        {} -> ""
    """
    if not isinstance(entity, Mapping):
        return ""
    keys = ('firstName', 'middleName', 'lastName') if middle else ('firstName', 'lastName')
    parts = [str(entity.get(k) or '').strip() for k in keys]
    return " ".join(p for p in parts if p)


def city_state_zip(entity: Optional[Mapping[str, Any]]) -> str:
    """
    "City, ST 77002" with missing parts dropped instead of leaving stray commas.
    """
    if not isinstance(entity, Mapping):
        return ""
    city = str(entity.get('city') or '').strip()
    state = str(entity.get('state') or '').strip()
    zip_code = str(entity.get('zip') or '').strip()
    tail = " ".join(p for p in (state, zip_code) if p)
    if city and tail:
        return f"{city}, {tail}"
    return city or tail


def full_address(entity: Optional[Mapping[str, Any]]) -> str:
    """Street address followed by city/state/zip, or a prebuilt fullAddress."""
    if not isinstance(entity, Mapping):
        return ""
    prebuilt = str(entity.get('fullAddress') or '').strip()
    if prebuilt:
        return prebuilt
    street = str(entity.get('address') or '').strip()
    rest = city_state_zip(entity)
    return ", ".join(p for p in (street, rest) if p)


# Registry of available transforms
TRANSFORMS: Dict[str, TransformFunc] = {
    'date': format_date,
    'phone': format_phone,
    'currency': format_currency,
    'ssn': mask_tail,
    'yes_no': format_yes_no,
    'gender': format_gender,
    'none': transform_none,
}


def get_transform(name: str) -> Optional[TransformFunc]:
    """Get a transform function by name."""
    return TRANSFORMS.get(name)


def apply_transform(value: Any, transform_name: Optional[str]) -> str:
    """
    Apply a named transform to a value.

    If transform_name is None or not found, returns str(value).
    """
    if not transform_name:
        return transform_none(value)

    transform_func = get_transform(transform_name)
    if transform_func:
        return transform_func(value)

    logger.warning(f"Unknown transform: {transform_name}")
    return transform_none(value)


def register_transform(name: str, func: TransformFunc) -> None:
    """
    Register a custom transform function.

    Registered transforms become Jinja filters for templates rendered
    after registration:
        from services.forms.transforms import register_transform
        register_transform('county_name', my_county_formatter)
    """
    TRANSFORMS[name] = func
    logger.debug(f"Registered transform: {name}")
