"""Tests for JSON dispatch."""

import base64
import json

import httpx
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ReqGuard.Dispatch import (
    DispatchSettings,
    RequestDescriptor,
    RequestDispatcher,
    SerializationError,
    ValidationError,
    make_json_request,
)

from tests.fixtures.http_mocking import RecordingTransport


def test_json_body_is_compact_object(dispatcher, recording_transport):
    """{"x": 1} is sent as {"x":1} with a JSON content type."""
    record = dispatcher.send_json(
        RequestDescriptor(method="POST", url="https://api.example.org/items", body={"x": 1})
    )

    request = recording_transport.last_request
    assert request.content == b'{"x":1}'
    assert json.loads(request.content) == {"x": 1}
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert record.body == '{"x":1}'


def test_nested_body_round_trips(dispatcher, recording_transport):
    body = {"user": {"name": "Zoë", "tags": ["a", "b"]}, "active": True, "score": 1.5, "note": None}

    dispatcher.send_json(RequestDescriptor(method="POST", url="https://api.example.org/items", body=body))

    assert json.loads(recording_transport.last_request.content.decode("utf-8")) == body


def test_body_fixed_at_construction(dispatcher, recording_transport):
    """Mutating the caller's nested objects after construction changes nothing on the wire."""
    tags = ["a"]
    descriptor = RequestDescriptor(
        method="POST",
        url="https://api.example.org/items",
        body={"tags": tags, "meta": {"n": 1}},
    )
    tags.append("b")

    dispatcher.send_json(descriptor)

    assert recording_transport.last_request.content == b'{"tags":["a"],"meta":{"n":1}}'


def test_empty_method_defaults_to_post(dispatcher, recording_transport):
    dispatcher.send_json(RequestDescriptor(method="", url="https://api.example.org/items", body={}))

    assert recording_transport.last_request.method == "POST"


def test_explicit_method_honoured(dispatcher, recording_transport):
    dispatcher.send_json(RequestDescriptor(method="PATCH", url="https://api.example.org/items/1", body={"x": 2}))

    assert recording_transport.last_request.method == "PATCH"


def test_json_timeout_budget(dispatcher, recording_transport):
    dispatcher.send_json(RequestDescriptor(method="POST", url="https://api.example.org/items", body={}))

    assert recording_transport.last_request.extensions["timeout"]["read"] == pytest.approx(120.0, abs=1.0)


def test_timeout_override_from_settings(recording_transport):
    dispatcher = RequestDispatcher(DispatchSettings(json_timeout=5), transport=recording_transport)

    dispatcher.send_json(RequestDescriptor(method="POST", url="https://api.example.org/items", body={}))

    assert recording_transport.last_request.extensions["timeout"]["connect"] == pytest.approx(5.0, abs=1.0)


def test_caller_headers_merged(dispatcher, recording_transport):
    dispatcher.send_json(
        RequestDescriptor(
            method="POST",
            url="https://api.example.org/items",
            body={},
            headers={"Accept": "application/vnd.api+json", "X-Request-Id": "42"},
        )
    )

    headers = recording_transport.last_request.headers
    assert headers.get_list("Accept") == ["application/vnd.api+json"]
    assert headers["X-Request-Id"] == "42"
    assert headers["Content-Type"] == "application/json"


def test_non_string_header_fails_fast(dispatcher, recording_transport):
    with pytest.raises(ValidationError, match="X-Count"):
        dispatcher.send_json(
            RequestDescriptor(
                method="POST",
                url="https://api.example.org/items",
                body={},
                headers={"X-Count": 1},
            )
        )
    assert recording_transport.requests == []


def test_unsupported_body_value_rejected_before_io(dispatcher, recording_transport):
    with pytest.raises(ValidationError, match=r"body\.tags") as excinfo:
        dispatcher.send_json(
            RequestDescriptor(method="POST", url="https://api.example.org/items", body={"tags": {"a", "b"}})
        )

    assert excinfo.value.url == "https://api.example.org/items"
    assert recording_transport.requests == []


def test_non_finite_float_is_serialization_error(dispatcher, recording_transport):
    with pytest.raises(SerializationError) as excinfo:
        dispatcher.send_json(
            RequestDescriptor(method="POST", url="https://api.example.org/items", body={"x": float("nan")})
        )

    assert excinfo.value.phase == "serialize"
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert recording_transport.requests == []


def test_basic_auth_on_json(dispatcher, recording_transport):
    dispatcher.send_json(
        RequestDescriptor(method="POST", url="https://api.example.org/items", auth="alice:secret", body={})
    )

    expected = "Basic " + base64.b64encode(b"alice:secret").decode("ascii")
    assert recording_transport.last_request.headers["Authorization"] == expected


def test_status_and_headers_normalised(make_transport, dispatch_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            201,
            json={"id": 7},
            headers=[("set-cookie", "a=1"), ("set-cookie", "b=2"), ("x-rate-limit", "10")],
        )

    transport = make_transport(handler)
    record = make_json_request(
        RequestDescriptor(method="POST", url="https://api.example.org/items", body={"x": 1}),
        settings=dispatch_settings,
        transport=transport,
    )

    assert record.status_code == 201
    assert record.status == "201 Created"
    assert record.header["Set-Cookie"] == ("a=1", "b=2")
    assert record.get_header("X-RATE-LIMIT") == "10"
    assert json.loads(record.body) == {"id": 7}


_credential_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters=":"),
    min_size=1,
    max_size=20,
)


@settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(user=_credential_text, password=st.text(alphabet=st.characters(blacklist_categories=("Cs",)), max_size=20))
def test_basic_auth_encodes_user_and_password(user, password):
    """Any user without a colon plus any password survives the Basic encoding."""
    transport = RecordingTransport()
    dispatcher = RequestDispatcher(DispatchSettings(), transport=transport)

    dispatcher.send_json(
        RequestDescriptor(
            method="POST",
            url="https://api.example.org/items",
            auth=f"{user}:{password}",
            body={},
        )
    )

    scheme, _, token = transport.last_request.headers["Authorization"].partition(" ")
    assert scheme == "Basic"
    decoded_user, _, decoded_password = base64.b64decode(token).decode("utf-8").partition(":")
    assert (decoded_user, decoded_password) == (user, password)
