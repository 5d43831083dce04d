# === NAVMAP v1 ===
# {
#   "module": "ReqGuard.Dispatch.dispatcher",
#   "purpose": "Build, send, and drain one outbound HTTP request per call",
#   "sections": [
#     {"id": "prepared-request", "name": "PreparedRequest", "anchor": "class-prepared-request", "kind": "class"},
#     {"id": "request-dispatcher", "name": "RequestDispatcher", "anchor": "class-request-dispatcher", "kind": "class"},
#     {"id": "parse-basic-auth", "name": "parse_basic_auth", "anchor": "function-parse-basic-auth", "kind": "function"},
#     {"id": "merge-headers", "name": "merge_headers", "anchor": "function-merge-headers", "kind": "function"},
#     {"id": "make-form-request", "name": "make_form_request", "anchor": "function-make-form-request", "kind": "function"},
#     {"id": "make-json-request", "name": "make_json_request", "anchor": "function-make-json-request", "kind": "function"},
#     {"id": "make-xml-request", "name": "make_xml_request", "anchor": "function-make-xml-request", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Build, send, and drain one outbound HTTP request per call.

Responsibilities
----------------
- Turn a :class:`~ReqGuard.Dispatch.models.RequestDescriptor` plus a
  :class:`~ReqGuard.Dispatch.encoding.BodyEncoding` into a single
  ``httpx.Request``.
- Send it, follow redirects, and read the whole body into memory, all under one
  deadline set by the variant's timeout budget.
- Translate every failure into the phase-specific exceptions from
  :mod:`ReqGuard.Dispatch.errors`.

Design Notes
------------
- One attempt per call. Retries, if wanted, belong to the caller.
- The budget bounds the whole exchange. Each redirect hop is sent with the time
  left as its httpx per-phase timeout, and the body drain checks the deadline
  after every chunk.
- Caller headers replace same-named defaults (case-insensitive); the computed
  ``Content-Length`` of form bodies cannot be overridden.
- The client and response are closed on every exit path before the call returns.
- Nothing is logged above DEBUG; failures are raised, not logged.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import httpx

from ReqGuard.Dispatch.client import create_http_client
from ReqGuard.Dispatch.encoding import BodyEncoding
from ReqGuard.Dispatch.errors import (
    ConstructionError,
    DispatchError,
    ReadError,
    RequestDispatchError,
    ValidationError,
)
from ReqGuard.Dispatch.logging_utils import mask_sensitive_data, redact_url
from ReqGuard.Dispatch.models import RequestDescriptor, ResponseRecord, XMLRequestDescriptor
from ReqGuard.Dispatch.policy import MIN_AUTH_LENGTH
from ReqGuard.Dispatch.settings import DispatchSettings, get_settings

__all__ = [
    "PreparedRequest",
    "RequestDispatcher",
    "parse_basic_auth",
    "merge_headers",
    "make_form_request",
    "make_json_request",
    "make_xml_request",
]

logger = logging.getLogger(__name__)

# RFC 9110 token characters
_METHOD_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

_COMPUTED_HEADERS = {"content-length"}

AnyDescriptor = Union[RequestDescriptor, XMLRequestDescriptor]


@dataclass(frozen=True)
class PreparedRequest:
    """Validated, encoded request waiting to be sent."""

    encoding: BodyEncoding
    method: str
    url: str
    content: bytes
    headers: Tuple[Tuple[str, str], ...]
    auth: Optional[httpx.BasicAuth] = None


def parse_basic_auth(auth: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split ``"user:pass"`` on the first colon.

    Strings shorter than two characters mean "no credentials".  Anything longer
    must contain a colon; the password may itself contain colons.

    Raises:
        ValidationError: If a credential string has no colon.
    """
    if not auth or len(auth) < MIN_AUTH_LENGTH:
        return None
    user, sep, password = auth.partition(":")
    if not sep:
        raise ValidationError("auth must be formatted as 'user:password'")
    return user, password


def merge_headers(
    defaults: Sequence[Tuple[str, str]], overrides: Optional[Mapping[str, Any]]
) -> httpx.Headers:
    """Overlay caller ``overrides`` on ``defaults``.

    A caller header replaces every default with the same name; headers in
    ``_COMPUTED_HEADERS`` keep their computed value.

    Raises:
        ValidationError: If a header name or value is not a string.
    """
    headers = httpx.Headers(list(defaults))
    for name, value in (overrides or {}).items():
        if not isinstance(name, str) or not name:
            raise ValidationError(f"header name {name!r} must be a non-empty string")
        if not isinstance(value, str):
            raise ValidationError(
                f"header {name!r} value must be a string, got {type(value).__name__}"
            )
        if name.lower() in _COMPUTED_HEADERS and name in headers:
            logger.debug("Ignoring caller override of computed header", extra={"header": name})
            continue
        headers[name] = value
    return headers


class RequestDispatcher:
    """Stateless sender for form, JSON, and raw XML requests.

    Args:
        settings: Dispatch settings; the process-wide settings when omitted.
        transport: Optional ``httpx`` transport override, used by tests.

    Examples:
        >>> dispatcher = RequestDispatcher()
        >>> record = dispatcher.send_json(
        ...     RequestDescriptor(method="POST", url="https://example.org/api", body={"x": 1})
        ... )  # doctest: +SKIP
    """

    def __init__(
        self,
        settings: Optional[DispatchSettings] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> DispatchSettings:
        return self._settings or get_settings()

    def send_form(self, descriptor: RequestDescriptor) -> ResponseRecord:
        """Send ``descriptor`` as a form-urlencoded request."""
        return self.dispatch(BodyEncoding.FORM, descriptor)

    def send_json(self, descriptor: RequestDescriptor) -> ResponseRecord:
        """Send ``descriptor`` as a JSON request."""
        return self.dispatch(BodyEncoding.JSON, descriptor)

    def send_xml(self, descriptor: XMLRequestDescriptor) -> ResponseRecord:
        """POST ``descriptor.body`` as ``text/xml``."""
        return self.dispatch(BodyEncoding.RAW_XML, descriptor)

    def dispatch(self, encoding: BodyEncoding, descriptor: AnyDescriptor) -> ResponseRecord:
        """Run one complete exchange for ``descriptor`` encoded as ``encoding``.

        Raises:
            ValidationError: Descriptor input rejected before any I/O.
            SerializationError: JSON body could not be encoded.
            ConstructionError: Method or URL could not form a request.
            DispatchError: Connection, DNS, timeout, or protocol failure.
            ReadError: The response body could not be read completely.
        """
        settings = self.settings
        prepared = self.prepare(encoding, descriptor, settings=settings)
        return self._execute(prepared, settings)

    def prepare(
        self,
        encoding: BodyEncoding,
        descriptor: AnyDescriptor,
        *,
        settings: Optional[DispatchSettings] = None,
    ) -> PreparedRequest:
        """Validate and encode ``descriptor`` without touching the network."""
        settings = settings or self.settings
        url = getattr(descriptor, "url", "")
        if encoding.fixed_method:
            method = encoding.default_method
        else:
            method = (getattr(descriptor, "method", "") or encoding.default_method).strip()

        try:
            if not isinstance(url, str) or not url:
                raise ValidationError("request url is required")
            encoded = encoding.encode(
                descriptor.body, reject_empty=settings.reject_empty_form_body
            )
            caller_headers = descriptor.headers if encoding.accepts_caller_headers else None
            headers = merge_headers(encoded.headers, caller_headers)
            credentials = (
                parse_basic_auth(getattr(descriptor, "auth", "")) if encoding.supports_auth else None
            )
        except RequestDispatchError as exc:
            _annotate(exc, encoding, method, url)
            raise

        if not _METHOD_TOKEN.match(method):
            raise ConstructionError(
                f"{encoding.value} request: invalid method {method!r}",
                encoding=encoding.value,
                method=method,
                url=url,
            )

        return PreparedRequest(
            encoding=encoding,
            method=method,
            url=url,
            content=encoded.content,
            headers=tuple(
                (name.decode("latin-1"), value.decode("latin-1")) for name, value in headers.raw
            ),
            auth=httpx.BasicAuth(*credentials) if credentials else None,
        )

    def _build_request(self, client: httpx.Client, prepared: PreparedRequest) -> httpx.Request:
        context = _context(prepared)
        try:
            url = httpx.URL(prepared.url)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise ConstructionError(
                f"{prepared.encoding.value} request: invalid url: {exc}", **context
            ) from exc
        if not url.is_absolute_url or not url.host:
            raise ConstructionError(
                f"{prepared.encoding.value} request: url must be absolute", **context
            )
        try:
            return client.build_request(
                prepared.method,
                url,
                content=prepared.content,
                headers=list(prepared.headers),
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise ConstructionError(
                f"{prepared.encoding.value} request: new request: {exc}", **context
            ) from exc

    def _execute(self, prepared: PreparedRequest, settings: DispatchSettings) -> ResponseRecord:
        label = prepared.encoding.value
        timeout = settings.timeout_for(prepared.encoding)
        deadline = time.monotonic() + timeout

        with create_http_client(
            timeout=timeout, settings=settings, transport=self._transport
        ) as client:
            request = self._build_request(client, prepared)
            logger.debug(
                "Dispatching %s request",
                label,
                extra={
                    "method": prepared.method,
                    "url_redacted": redact_url(prepared.url),
                    "content_type": prepared.encoding.content_type,
                    "headers": mask_sensitive_data(dict(request.headers)),
                    "basic_auth": prepared.auth is not None,
                    "timeout": timeout,
                },
            )
            start = time.perf_counter()
            response = self._send(client, request, prepared, settings, deadline)
            try:
                content = self._drain(response, prepared, deadline)
            finally:
                response.close()

        record = ResponseRecord.from_httpx(response, content)
        logger.debug(
            "Completed %s request",
            label,
            extra={
                "method": prepared.method,
                "url_redacted": redact_url(prepared.url),
                "status": record.status_code,
                "bytes_read": len(record.content),
                "elapsed_ms": (time.perf_counter() - start) * 1000.0,
            },
        )
        return record

    def _send(
        self,
        client: httpx.Client,
        request: httpx.Request,
        prepared: PreparedRequest,
        settings: DispatchSettings,
        deadline: float,
    ) -> httpx.Response:
        """Send ``request`` and follow redirects by hand, all hops sharing ``deadline``.

        Each hop gets the remaining budget as its per-phase httpx timeout.
        """
        context = _context(prepared)
        label = prepared.encoding.value
        auth: Optional[httpx.Auth] = prepared.auth
        hops = 0
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                cause = httpx.TimeoutException("request deadline exceeded", request=request)
                raise DispatchError(f"{label} request dispatch: {cause}", **context) from cause
            budget = httpx.Timeout(remaining).as_dict()
            request.extensions = {**request.extensions, "timeout": budget}
            try:
                response = client.send(request, auth=auth, stream=True, follow_redirects=False)
            except httpx.RequestError as exc:
                raise DispatchError(f"{label} request dispatch: {exc}", **context) from exc

            if not settings.follow_redirects or response.next_request is None:
                return response
            response.close()
            if hops >= settings.max_redirects:
                cause = httpx.TooManyRedirects(
                    "Exceeded maximum allowed redirects.", request=request
                )
                raise DispatchError(f"{label} request dispatch: {cause}", **context) from cause

            hops += 1
            request = response.next_request
            # Credentials ride along in the copied headers; httpx strips them cross-origin.
            auth = None
            logger.debug(
                "Following redirect",
                extra={"hop": hops, "url_redacted": redact_url(str(request.url))},
            )

    def _drain(self, response: httpx.Response, prepared: PreparedRequest, deadline: float) -> bytes:
        """Read the whole body, failing once ``deadline`` has passed.

        The deadline is checked after every chunk; a single blocked socket read is
        bounded by the per-phase timeout set when the hop was sent.
        """
        context = _context(prepared)
        label = prepared.encoding.value
        chunks = []
        try:
            for chunk in response.iter_bytes():
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    cause = httpx.ReadTimeout(
                        "response body not read before the request deadline",
                        request=response.request,
                    )
                    raise ReadError(f"{label} response read: {cause}", **context) from cause
        except httpx.RequestError as exc:
            raise ReadError(f"{label} response read: {exc}", **context) from exc
        return b"".join(chunks)


def _context(prepared: PreparedRequest) -> dict:
    return {
        "encoding": prepared.encoding.value,
        "method": prepared.method,
        "url": prepared.url,
    }


def _annotate(exc: RequestDispatchError, encoding: BodyEncoding, method: str, url: Any) -> None:
    if exc.encoding is None:
        exc.encoding = encoding.value
    if exc.method is None:
        exc.method = method
    if exc.url is None:
        exc.url = url


def make_form_request(
    descriptor: RequestDescriptor,
    *,
    settings: Optional[DispatchSettings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ResponseRecord:
    """Send a form-urlencoded request (180 s default timeout)."""

    return RequestDispatcher(settings, transport=transport).send_form(descriptor)


def make_json_request(
    descriptor: RequestDescriptor,
    *,
    settings: Optional[DispatchSettings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ResponseRecord:
    """Send a JSON request (120 s default timeout)."""

    return RequestDispatcher(settings, transport=transport).send_json(descriptor)


def make_xml_request(
    descriptor: XMLRequestDescriptor,
    *,
    settings: Optional[DispatchSettings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ResponseRecord:
    """POST a raw XML document (120 s default timeout)."""

    return RequestDispatcher(settings, transport=transport).send_xml(descriptor)
