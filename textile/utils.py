from __future__ import annotations

import json
import logging
from datetime import datetime, date, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

NOT_APPLICABLE = "Not Applicable"
GST_RATES = ("2.5%", "5%", "6%", "9%", "12%", "18%", NOT_APPLICABLE)


def iso_today() -> str:
    return date.today().isoformat()


def iso_now() -> str:
    # Use UTC ISO timestamps for consistency.
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def to_float(v: Any) -> float:
    """Store values can be NULL, blank or junk text; all of those count as 0."""
    if v is None or v == "":
        return 0.0
    try:
        return float(v)
    except (TypeError, ValueError):
        return 0.0


def to_int(v: Any) -> int:
    return int(to_float(v))


def gst_percentage(rate: Optional[str]) -> float:
    if rate is None:
        return 0.0
    s = str(rate).strip()
    if not s or s == NOT_APPLICABLE:
        return 0.0
    try:
        return float(s.replace("%", ""))
    except ValueError:
        logger.warning("Unrecognised GST rate %r treated as 0", rate)
        return 0.0


def gst_amount(rate: Optional[str], base: Any) -> float:
    """
    GST(rate, base): 0 when the rate is missing or "Not Applicable",
    otherwise base × percentage / 100.

      gst_amount("18%", 100) -> 18.0
    """
    pct = gst_percentage(rate)
    if not pct:
        return 0.0
    return to_float(base) * (pct / 100.0)


def validate_gst_rate(rate: Optional[str], label: str) -> str:
    if rate is None or str(rate).strip() == "":
        return NOT_APPLICABLE
    s = str(rate).strip()
    if s not in GST_RATES:
        raise ValueError(f"{label} must be one of: {', '.join(GST_RATES)}.")
    return s


def parse_json_list(raw: Any, *, required_keys: tuple[str, ...] = (), field: str = "value") -> list:
    """
    Parse a JSON-encoded list sub-field (sizes, quality lines, PO items...).

    Accepts an already-decoded list or a JSON string. Anything else, or a list
    whose items are not objects carrying ``required_keys``, yields [].
    """
    if raw is None or raw == "":
        return []
    data = raw
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Malformed JSON in %s; using empty list", field)
            return []
    if not isinstance(data, list):
        logger.warning("Expected a list in %s, got %s; using empty list", field, type(data).__name__)
        return []
    if required_keys:
        for item in data:
            if not isinstance(item, dict) or any(k not in item for k in required_keys):
                logger.warning("Unexpected item shape in %s; using empty list", field)
                return []
    return data


def dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def next_code(prefix: str, last_code: Optional[str], width: int = 3) -> str:
    """
    {prefix}{NNN}: one after the numeric suffix of ``last_code``.

      next_code("BN20250101", "BN20250101007") -> "BN20250101008"
      next_code("BN20250101", "BN20250101999") -> "BN202501011000"
    """
    seq = 1
    if last_code and str(last_code).startswith(prefix):
        tail = str(last_code)[len(prefix):]
        if tail.isdigit():
            seq = int(tail) + 1
    return f"{prefix}{seq:0{width}d}"


def format_inr(amount: Any) -> str:
    return f"₹{to_float(amount):,.2f}"


def clean_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s if s else None
