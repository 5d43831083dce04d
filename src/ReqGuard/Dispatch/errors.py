"""Exception hierarchy for outbound request dispatch.

A dispatch call moves through fixed phases: validate the descriptor, serialise
the body, construct the wire request, send it, drain the response body.  Each
phase has its own exception class; all of them derive from
:class:`RequestDispatchError` and expose the failing phase as ``phase``.

The underlying cause (``httpx`` transport errors, ``json`` failures) is chained
via ``raise ... from``.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "RequestDispatchError",
    "ValidationError",
    "ConstructionError",
    "SerializationError",
    "DispatchError",
    "ReadError",
    "PHASE_VALIDATE",
    "PHASE_SERIALIZE",
    "PHASE_CONSTRUCT",
    "PHASE_DISPATCH",
    "PHASE_READ",
]

PHASE_VALIDATE = "validate"
PHASE_SERIALIZE = "serialize"
PHASE_CONSTRUCT = "construct"
PHASE_DISPATCH = "dispatch"
PHASE_READ = "read"


class RequestDispatchError(RuntimeError):
    """Base exception for a failed outbound request."""

    phase: str = ""

    def __init__(
        self,
        message: str,
        *,
        encoding: Optional[str] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.encoding = encoding
        self.method = method
        self.url = url


class ValidationError(RequestDispatchError):
    """Raised when a descriptor is missing or carries malformed input."""

    phase = PHASE_VALIDATE


class ConstructionError(RequestDispatchError):
    """Raised when the wire request cannot be built from a valid descriptor."""

    phase = PHASE_CONSTRUCT


class SerializationError(RequestDispatchError):
    """Raised when the request body cannot be encoded."""

    phase = PHASE_SERIALIZE


class DispatchError(RequestDispatchError):
    """Raised on connection, DNS, timeout, or protocol failure while sending."""

    phase = PHASE_DISPATCH


class ReadError(RequestDispatchError):
    """Raised when the response body could not be drained completely."""

    phase = PHASE_READ


# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.errors",
#   "purpose": "Define the phase-classified exception hierarchy for outbound requests",
#   "sections": [
#     {"id": "phases", "name": "Phase Names", "anchor": "PHS", "kind": "constants"},
#     {"id": "base", "name": "Base Exception", "anchor": "BAS", "kind": "api"},
#     {"id": "pre-io", "name": "Validation, Serialization & Construction Errors", "anchor": "PRE", "kind": "api"},
#     {"id": "io", "name": "Dispatch & Read Errors", "anchor": "IO", "kind": "api"}
#   ]
# }
# === /NAVMAP ===
