from datetime import datetime, timezone
from typing import Any, Optional
import hashlib
import math

import orjson


def utc_now() -> datetime:
    """Istante corrente in UTC (naive, come salvato su DB)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Safely convert value to a finite float, returning default if conversion fails"""
    if value is None or value == "":
        return default
    try:
        parsed = float(value)
    except (ValueError, TypeError):
        return default
    return parsed if math.isfinite(parsed) else default


def to_amount_cents(value: Any) -> Optional[int]:
    """Importo decimale -> centesimi interi (None se non numerico)"""
    numeric = safe_float(value, None)
    if numeric is None:
        return None
    return int(round(numeric * 100))


def round3(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return round(float(value), 3)


def trim_or_none(value: Any) -> Optional[str]:
    """Stringa ripulita o None se vuota / non stringa"""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def digest_hex(payload: Any) -> str:
    """SHA-256 esadecimale di un payload JSON canonico (chiavi ordinate)"""
    return hashlib.sha256(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS)).hexdigest()
