from __future__ import annotations

import base64
import hashlib
from typing import Any, Optional

import orjson


def _orjson_dumps(obj: Any) -> bytes:
    return orjson.dumps(
        obj,
        option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS,
    )


def sha256_b64(data: bytes) -> str:
    h = hashlib.sha256(data).digest()
    return base64.urlsafe_b64encode(h).decode("ascii").rstrip("=")


def signal_id(provider: str, origin_url: Optional[str], *, text: str = "", created_at: str = "") -> str:
    """
    Stable identity for a normalized post.

    The origin URL is the provider's own permalink, so it wins when present;
    otherwise fall back to content + timestamp.
    """
    url = (origin_url or "").strip()
    if url:
        payload = {"provider": provider, "url": url}
    else:
        payload = {"provider": provider, "text": (text or "").strip()[:280], "created_at": created_at}
    return sha256_b64(_orjson_dumps(payload))[:24]
