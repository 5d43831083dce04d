"""Outbound HTTP request helpers: form-urlencoded, JSON, and raw XML.

Each helper sends exactly one request with a fixed per-variant timeout, reads the
whole response into a :class:`ResponseRecord`, and raises a phase-specific
:class:`RequestDispatchError` subclass on failure. There are no retries.

Modules:
- models: request descriptors and the normalized response record
- encoding: body encodings and boundary validation
- dispatcher: request construction, sending, and draining
- client: per-call HTTPX client factory
- settings / policy: configuration and defaults
- errors: phase-classified exception hierarchy

Example:
    >>> from ReqGuard.Dispatch import RequestDescriptor, make_json_request
    >>> record = make_json_request(
    ...     RequestDescriptor(method="POST", url="https://example.org/api", body={"x": 1})
    ... )  # doctest: +SKIP
    >>> record.status  # doctest: +SKIP
    '200 OK'
"""

from ReqGuard.Dispatch.dispatcher import (
    PreparedRequest,
    RequestDispatcher,
    make_form_request,
    make_json_request,
    make_xml_request,
    merge_headers,
    parse_basic_auth,
)
from ReqGuard.Dispatch.encoding import BodyEncoding, EncodedBody
from ReqGuard.Dispatch.errors import (
    ConstructionError,
    DispatchError,
    ReadError,
    RequestDispatchError,
    SerializationError,
    ValidationError,
)
from ReqGuard.Dispatch.models import (
    RequestDescriptor,
    ResponseRecord,
    XMLRequestDescriptor,
)
from ReqGuard.Dispatch.settings import DispatchSettings, get_settings, reset_settings

__all__ = [
    # Entry points
    "make_form_request",
    "make_json_request",
    "make_xml_request",
    "RequestDispatcher",
    "PreparedRequest",
    "merge_headers",
    "parse_basic_auth",
    # Data model
    "RequestDescriptor",
    "XMLRequestDescriptor",
    "ResponseRecord",
    "BodyEncoding",
    "EncodedBody",
    # Configuration
    "DispatchSettings",
    "get_settings",
    "reset_settings",
    # Errors
    "RequestDispatchError",
    "ValidationError",
    "ConstructionError",
    "SerializationError",
    "DispatchError",
    "ReadError",
]
