# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.encoding",
#   "purpose": "Body encodings for form, JSON, and raw XML requests",
#   "sections": [
#     {"id": "encoded-body", "name": "EncodedBody", "anchor": "class-encoded-body", "kind": "class"},
#     {"id": "body-encoding", "name": "BodyEncoding", "anchor": "class-body-encoding", "kind": "class"},
#     {"id": "encode-form-body", "name": "encode_form_body", "anchor": "function-encode-form-body", "kind": "function"},
#     {"id": "encode-json-body", "name": "encode_json_body", "anchor": "function-encode-json-body", "kind": "function"},
#     {"id": "encode-xml-body", "name": "encode_xml_body", "anchor": "function-encode-xml-body", "kind": "function"},
#     {"id": "validate-json-value", "name": "validate_json_value", "anchor": "function-validate-json-value", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Body encodings for form, JSON, and raw XML requests.

Each :class:`BodyEncoding` member bundles what differs between the three request
variants: the content type, the default headers, whether basic auth applies, and
the function that turns a body into bytes.  Everything else (header merging,
auth, sending, draining) is shared by the dispatcher.

Bodies are checked at this boundary so unsupported value shapes fail with a
:class:`~ReqGuard.Dispatch.errors.ValidationError` naming the offending key,
instead of surfacing as an opaque error from deep inside ``json`` or ``urllib``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

from ReqGuard.Dispatch import policy
from ReqGuard.Dispatch.errors import SerializationError, ValidationError

__all__ = [
    "EncodedBody",
    "BodyEncoding",
    "encode_form_body",
    "encode_json_body",
    "encode_xml_body",
    "validate_json_value",
]

_FORM_SCALARS = (str, int, float, bool)


@dataclass(frozen=True)
class EncodedBody:
    """Serialized request body plus the headers that describe it."""

    content: bytes
    headers: Tuple[Tuple[str, str], ...]


def _form_scalar(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _FORM_SCALARS):
        return str(value)
    raise ValidationError(
        f"form field {key!r} has unsupported value type {type(value).__name__}"
    )


def encode_form_body(body: Optional[Mapping[str, Any]], *, reject_empty: bool = False) -> EncodedBody:
    """Encode ``body`` as ``application/x-www-form-urlencoded``.

    Keys are emitted in sorted order and spaces become ``+``, so
    ``{"q": "hello world"}`` encodes to ``q=hello+world``.  List and tuple values
    repeat the key once per item.

    Raises:
        ValidationError: If ``body`` is ``None``, empty while ``reject_empty`` is
            set, or holds keys/values that cannot be form encoded.
    """
    if body is None:
        raise ValidationError("no form body found")
    if reject_empty and not body:
        raise ValidationError("form body is empty")

    pairs: List[Tuple[str, str]] = []
    for key in sorted(body, key=lambda item: str(item)):
        if not isinstance(key, str):
            raise ValidationError(f"form field name {key!r} is not a string")
        value = body[key]
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _form_scalar(key, item)) for item in value)
        else:
            pairs.append((key, _form_scalar(key, value)))

    content = urlencode(pairs).encode("ascii")
    headers = (
        ("Content-Type", policy.FORM_CONTENT_TYPE),
        ("Accept", policy.DEFAULT_ACCEPT),
        ("Content-Length", str(len(content))),
    )
    return EncodedBody(content=content, headers=headers)


def validate_json_value(value: Any, path: str = "body") -> None:
    """Check that ``value`` is a JSON-representable tree of supported types.

    Accepted shapes are ``str``, ``int``, ``float``, ``bool``, ``None``, mappings
    with string keys, and lists or tuples of accepted shapes.

    Raises:
        ValidationError: On the first unsupported node, naming its path.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValidationError(f"{path} has non-string key {key!r}")
            validate_json_value(item, f"{path}.{key}")
        return
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            validate_json_value(item, f"{path}[{index}]")
        return
    raise ValidationError(f"{path} has unsupported value type {type(value).__name__}")


def _json_default(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json_body(body: Optional[Mapping[str, Any]]) -> EncodedBody:
    """Encode ``body`` as compact UTF-8 JSON; ``None`` encodes as ``null``.

    Raises:
        ValidationError: If the body holds unsupported value shapes.
        SerializationError: If a supported value still cannot be encoded
            (non-finite floats, for example).
    """
    validate_json_value(body)
    try:
        text = json.dumps(
            dict(body) if body is not None else None,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"body json marshal: {exc}") from exc
    headers = (
        ("Content-Type", policy.JSON_CONTENT_TYPE),
        ("Accept", policy.DEFAULT_ACCEPT),
    )
    return EncodedBody(content=text.encode("utf-8"), headers=headers)


def encode_xml_body(body: Optional[str]) -> EncodedBody:
    """Encode a raw XML document as UTF-8 bytes."""
    if body is None:
        body = ""
    if not isinstance(body, str):
        raise ValidationError(f"xml body must be str, got {type(body).__name__}")
    return EncodedBody(
        content=body.encode("utf-8"),
        headers=(("Content-Type", policy.XML_CONTENT_TYPE),),
    )


class BodyEncoding(Enum):
    """Payload encoding variants understood by the dispatcher."""

    FORM = "form"
    JSON = "json"
    RAW_XML = "xml"

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]

    @property
    def default_method(self) -> str:
        return _DEFAULT_METHODS[self]

    @property
    def default_timeout(self) -> float:
        """Timeout budget in seconds before settings overrides."""
        return _DEFAULT_TIMEOUTS[self]

    @property
    def supports_auth(self) -> bool:
        return self is not BodyEncoding.RAW_XML

    @property
    def accepts_caller_headers(self) -> bool:
        return self is not BodyEncoding.RAW_XML

    @property
    def fixed_method(self) -> bool:
        """True when the variant ignores the caller's method."""
        return self is BodyEncoding.RAW_XML

    def encode(self, body: Any, *, reject_empty: bool = False) -> EncodedBody:
        """Serialize ``body`` with this variant's strategy."""
        if self is BodyEncoding.FORM:
            return encode_form_body(body, reject_empty=reject_empty)
        encoder: Callable[[Any], EncodedBody] = _ENCODERS[self]
        return encoder(body)


_CONTENT_TYPES: Dict[BodyEncoding, str] = {
    BodyEncoding.FORM: policy.FORM_CONTENT_TYPE,
    BodyEncoding.JSON: policy.JSON_CONTENT_TYPE,
    BodyEncoding.RAW_XML: policy.XML_CONTENT_TYPE,
}

_DEFAULT_METHODS: Dict[BodyEncoding, str] = {
    BodyEncoding.FORM: policy.FORM_DEFAULT_METHOD,
    BodyEncoding.JSON: policy.JSON_DEFAULT_METHOD,
    BodyEncoding.RAW_XML: policy.XML_METHOD,
}

_DEFAULT_TIMEOUTS: Dict[BodyEncoding, float] = {
    BodyEncoding.FORM: policy.FORM_TIMEOUT,
    BodyEncoding.JSON: policy.JSON_TIMEOUT,
    BodyEncoding.RAW_XML: policy.XML_TIMEOUT,
}

_ENCODERS: Dict[BodyEncoding, Callable[[Any], EncodedBody]] = {
    BodyEncoding.JSON: encode_json_body,
    BodyEncoding.RAW_XML: encode_xml_body,
}
