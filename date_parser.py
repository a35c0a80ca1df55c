# date_parser.py
import re
from typing import Any, Dict, Optional, Tuple

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_MONTH_LOOKUP = {}
for _i, _name in enumerate(MONTH_NAMES, start=1):
    _MONTH_LOOKUP[_name.lower()] = _i
    _MONTH_LOOKUP[_name[:3].lower()] = _i
_MONTH_LOOKUP["sept"] = 9

_ISO_RE = re.compile(r"^\s*(?P<y>\d{4})-(?P<m>\d{1,2})-(?P<d>\d{1,2})\s*$")
_NUMERIC_RE = re.compile(r"^\s*(?P<d>\d{1,2})\s*[/\-.]\s*(?P<m>\d{1,2})\s*$")
_NAME_FIRST_RE = re.compile(r"^\s*(?P<name>[A-Za-z]+)\.?\s+(?P<d>\d{1,2})(?:st|nd|rd|th)?\s*$", re.IGNORECASE)
_DAY_FIRST_RE = re.compile(r"^\s*(?P<d>\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?(?P<name>[A-Za-z]+)\.?\s*$", re.IGNORECASE)


def _first(value: Any) -> Any:
    # Flask's to_dict(flat=False) wraps every value in a list
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value

def _clean(value: Any) -> str:
    v = _first(value)
    if v is None:
        return ""
    return str(v).strip()

def month_from_name(name: str) -> Optional[int]:
    return _MONTH_LOOKUP.get((name or "").strip().rstrip(".").lower())

def _to_int(token: str) -> Optional[int]:
    try:
        return int(float(token))
    except (TypeError, ValueError):
        return None

def _month_token(token: str) -> Optional[int]:
    if not token:
        return None
    n = _to_int(token)
    if n is not None:
        return n
    return month_from_name(token)

def _check_range(day: Optional[int], month: Optional[int]) -> Optional[str]:
    if day is None:
        return "Day is missing or not a number"
    if month is None:
        return "Month is missing or not recognised"
    if not 1 <= day <= 31:
        return f"Day must be between 1 and 31 (got {day})"
    if not 1 <= month <= 12:
        return f"Month must be between 1 and 12 (got {month})"
    return None

def _split_free_text(text: str) -> Tuple[Optional[int], Optional[int]]:
    m = _ISO_RE.match(text)
    if m:
        return _to_int(m.group("d")), _to_int(m.group("m"))
    m = _NUMERIC_RE.match(text)
    if m:
        return _to_int(m.group("d")), _to_int(m.group("m"))
    m = _NAME_FIRST_RE.match(text)
    if m:
        return _to_int(m.group("d")), month_from_name(m.group("name"))
    m = _DAY_FIRST_RE.match(text)
    if m:
        return _to_int(m.group("d")), month_from_name(m.group("name"))
    return None, None

def parse_date(form_like: Any) -> Tuple[Optional[int], Optional[int], Optional[str]]:
    """
    Pull a calendar day and month out of a posted form, JSON body or string.
    Returns (day, month, error); on error day and month are None.

    Explicit ``day``/``month`` fields win over a free-text ``date`` field.
    """
    if isinstance(form_like, str):
        data: Dict[str, Any] = {"date": form_like}
    elif isinstance(form_like, dict):
        data = form_like
    else:
        return None, None, "Nothing to parse"

    day_raw = _clean(data.get("day"))
    month_raw = _clean(data.get("month"))
    date_raw = _clean(data.get("date"))

    if day_raw or month_raw:
        day = _to_int(day_raw) if day_raw else None
        month = _month_token(month_raw)
    elif date_raw:
        day, month = _split_free_text(date_raw)
        if day is None and month is None:
            return None, None, f"Could not read a date from {date_raw!r}"
    else:
        return None, None, "No day or month supplied"

    err = _check_range(day, month)
    if err:
        return None, None, err
    return day, month, None

def format_date(day: int, month: int) -> str:
    if 1 <= month <= 12:
        return f"{day} {MONTH_NAMES[month - 1][:3]}"
    return f"{day}/{month}"
