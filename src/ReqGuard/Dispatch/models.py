# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.models",
#   "purpose": "Request descriptors and normalized response records",
#   "sections": [
#     {"id": "request-descriptor", "name": "RequestDescriptor", "anchor": "class-request-descriptor", "kind": "class"},
#     {"id": "xml-request-descriptor", "name": "XMLRequestDescriptor", "anchor": "class-xml-request-descriptor", "kind": "class"},
#     {"id": "response-record", "name": "ResponseRecord", "anchor": "class-response-record", "kind": "class"},
#     {"id": "canonical-header-key", "name": "canonical_header_key", "anchor": "function-canonical-header-key", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Request descriptors and normalized response records.

Descriptors are frozen all the way down: construction copies the payload into
read-only containers at every nesting level, so mutating the objects a caller
passed in never changes what the descriptor sends.  A :class:`ResponseRecord` is
only ever built from a fully drained ``httpx.Response``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

__all__ = [
    "RequestDescriptor",
    "XMLRequestDescriptor",
    "ResponseRecord",
    "canonical_header_key",
]


def _freeze(value: Any) -> Any:
    """Return a deep, read-only copy of ``value``."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    return value


@dataclass(frozen=True)
class RequestDescriptor:
    """Description of one outbound form or JSON request.

    Attributes:
        method: HTTP verb. Empty means the variant default (``GET`` for form,
            ``POST`` for JSON).
        url: Absolute request URL.
        auth: ``"user:pass"`` credentials; ignored unless longer than one character.
        body: Key/value payload. Form bodies require flat scalar values, JSON
            bodies accept nested mappings and lists.
        headers: Caller headers merged over the variant defaults.
    """

    method: str
    url: str
    auth: str = ""
    body: Optional[Mapping[str, Any]] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "body", _freeze(self.body))
        object.__setattr__(self, "headers", _freeze(self.headers) or MappingProxyType({}))


@dataclass(frozen=True)
class XMLRequestDescriptor:
    """Raw XML payload posted to ``url``."""

    url: str
    body: str = ""


def canonical_header_key(name: str) -> str:
    """Return ``name`` in canonical MIME form, e.g. ``content-type`` -> ``Content-Type``."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


@dataclass(frozen=True)
class ResponseRecord:
    """Normalized result of one completed HTTP round trip."""

    status_code: int
    header: Mapping[str, Tuple[str, ...]]
    status: str
    body: str
    content: bytes = b""

    @classmethod
    def from_httpx(
        cls, response: httpx.Response, content: Optional[bytes] = None
    ) -> "ResponseRecord":
        """Build a record from a drained response.

        ``content`` is the decoded body when the caller drained the stream itself;
        otherwise the response must already have been read.
        """
        if content is None:
            content = response.content
            text = response.text
        else:
            text = content.decode(response.encoding or "utf-8", errors="replace")
        grouped: Dict[str, List[str]] = {}
        for raw_name, raw_value in response.headers.raw:
            name = canonical_header_key(raw_name.decode("latin-1"))
            grouped.setdefault(name, []).append(raw_value.decode("latin-1"))
        header = MappingProxyType({name: tuple(values) for name, values in grouped.items()})
        status = f"{response.status_code} {response.reason_phrase}".rstrip()
        return cls(
            status_code=response.status_code,
            header=header,
            status=status,
            body=text,
            content=content,
        )

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value of header ``name`` (case-insensitive)."""
        values = self.header.get(canonical_header_key(name))
        if not values:
            return default
        return values[0]
