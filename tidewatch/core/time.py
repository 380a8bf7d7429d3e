from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat().replace("+00:00", "Z")


def parse_iso(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string (``Z`` or offset suffix) into an aware UTC datetime."""
    if not s:
        return None
    try:
        t = str(s).strip()
        if not t:
            return None
        if t.endswith("Z"):
            t = t[:-1] + "+00:00"
        # Graph API uses "+0000" offsets
        if len(t) > 5 and t[-5] in "+-" and t[-4:].isdigit() and ":" not in t[-5:]:
            t = t[:-2] + ":" + t[-2:]
        dt = datetime.fromisoformat(t)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except Exception:
        return None
