"""Tests for body encodings and boundary validation."""

import pytest

from ReqGuard.Dispatch import BodyEncoding, SerializationError, ValidationError
from ReqGuard.Dispatch.encoding import (
    encode_form_body,
    encode_json_body,
    encode_xml_body,
    validate_json_value,
)


class TestFormBody:
    def test_keys_sorted_and_special_characters_escaped(self):
        encoded = encode_form_body({"z": "1", "a": "é/&=", "m": 2.5})

        assert encoded.content == b"a=%C3%A9%2F%26%3D&m=2.5&z=1"
        assert dict(encoded.headers)["Content-Length"] == str(len(encoded.content))

    def test_bool_and_tuple_values(self):
        encoded = encode_form_body({"on": False, "id": (1, 2)})

        assert encoded.content == b"id=1&id=2&on=false"

    def test_non_string_key_rejected(self):
        with pytest.raises(ValidationError, match="field name 1"):
            encode_form_body({1: "x"})

    def test_none_value_rejected(self):
        with pytest.raises(ValidationError, match="'q' has unsupported value type NoneType"):
            encode_form_body({"q": None})

    def test_empty_body_policy(self):
        assert encode_form_body({}).content == b""
        with pytest.raises(ValidationError):
            encode_form_body({}, reject_empty=True)


class TestJsonBody:
    @pytest.mark.parametrize(
        ("body", "path"),
        [
            ({"when": object()}, "body.when"),
            ({"items": [1, b"raw"]}, r"body.items\[1\]"),
            ({"outer": {"inner": {3}}}, "body.outer.inner"),
        ],
    )
    def test_validation_names_offending_path(self, body, path):
        with pytest.raises(ValidationError, match=path):
            validate_json_value(body)

    def test_non_string_nested_key_rejected(self):
        with pytest.raises(ValidationError, match="non-string key 5"):
            encode_json_body({"outer": {5: "five"}})

    def test_none_body_encodes_as_null(self):
        assert encode_json_body(None).content == b"null"

    def test_unicode_kept_as_utf8(self):
        assert encode_json_body({"name": "Zoë"}).content == '{"name":"Zoë"}'.encode("utf-8")

    def test_infinity_is_serialization_error(self):
        with pytest.raises(SerializationError, match="body json marshal"):
            encode_json_body({"x": float("inf")})


class TestXmlBody:
    def test_none_is_empty_document(self):
        assert encode_xml_body(None).content == b""

    def test_bytes_rejected(self):
        with pytest.raises(ValidationError, match="xml body must be str"):
            encode_xml_body(b"<a/>")


@pytest.mark.parametrize(
    ("encoding", "content_type", "method", "timeout", "auth", "fixed"),
    [
        (BodyEncoding.FORM, "application/x-www-form-urlencoded", "GET", 180.0, True, False),
        (BodyEncoding.JSON, "application/json", "POST", 120.0, True, False),
        (BodyEncoding.RAW_XML, "text/xml; charset=utf-8", "POST", 120.0, False, True),
    ],
)
def test_encoding_variant_table(encoding, content_type, method, timeout, auth, fixed):
    assert encoding.content_type == content_type
    assert encoding.default_method == method
    assert encoding.default_timeout == timeout
    assert encoding.supports_auth is auth
    assert encoding.accepts_caller_headers is auth
    assert encoding.fixed_method is fixed
