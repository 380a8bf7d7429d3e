from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import HTTPException

if TYPE_CHECKING:
    from tidewatch.core.contracts import GeotagVerdict


# ──────────────────────────────────────────────────────────────
# Domain errors
# ──────────────────────────────────────────────────────────────

class InputError(ValueError):
    """Malformed or out-of-range request input. Never retried."""


class ProviderError(RuntimeError):
    """A single provider failed (transport, auth, quota, malformed payload)."""

    def __init__(self, provider: str, message: str, *, status_code: Optional[int] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class ValidationError(Exception):
    """A crowd report was rejected; ``reason`` is shown to the submitter."""

    def __init__(self, reason: str, verdict: Optional["GeotagVerdict"] = None):
        super().__init__(reason)
        self.reason = reason
        self.verdict = verdict


LOCATION_PERMISSION_DENIED = "permission-denied"
LOCATION_UNAVAILABLE = "position-unavailable"
LOCATION_TIMEOUT = "timeout"
LOCATION_UNKNOWN = "unknown"


class LocationError(Exception):
    """Every live-location tier failed; ``kind`` classifies the last failure."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


# ──────────────────────────────────────────────────────────────
# HTTP raisers
# ──────────────────────────────────────────────────────────────

def bad_request(code: str, message: str):
    raise HTTPException(status_code=400, detail={"code": code, "message": message})


def not_found(code: str, message: str):
    raise HTTPException(status_code=404, detail={"code": code, "message": message})


def payload_too_large(code: str, message: str):
    raise HTTPException(status_code=413, detail={"code": code, "message": message})
