"""Tests for error classification of non-2xx responses."""

import json

from hrobot.core.errors import (
    ApiError,
    DeserializationError,
    ErrorCode,
    RobotError,
    SerializationError,
    UnparseableResponseError,
    map_error,
)
from tests.conftest import ERROR_BODY, error_body


def dumps(document) -> bytes:
    return json.dumps(document).encode()


class TestMapError:
    def test_structured_error(self):
        error = map_error(400, dumps(ERROR_BODY))

        assert isinstance(error, ApiError)
        assert error.status == 400
        assert error.code == "INVALID_INPUT"
        assert error.error_code is ErrorCode.INVALID_INPUT
        assert error.message == "invalid input"
        assert error.missing == ["minute", "hour"]
        assert error.invalid is None

    def test_unknown_code_is_kept(self):
        error = map_error(409, dumps(error_body(409, "SOMETHING_NEW", "new")))

        assert isinstance(error, ApiError)
        assert error.code == "SOMETHING_NEW"
        assert error.error_code is None

    def test_rate_limit_fields(self):
        body = {
            "error": {
                "status": 403,
                "code": "RATE_LIMIT_EXCEEDED",
                "message": "Rate limit exceeded",
                "max_request": 200,
                "interval": 3600,
            }
        }
        error = map_error(403, dumps(body))

        assert error.error_code is ErrorCode.RATE_LIMIT_EXCEEDED
        assert error.max_request == 200
        assert error.interval == 3600

    def test_status_falls_back_to_http_status(self):
        body = {"error": {"code": "SERVER_NOT_FOUND", "message": "Server not found"}}
        error = map_error(404, dumps(body))

        assert error.status == 404
        assert error.error_code is ErrorCode.SERVER_NOT_FOUND

    def test_html_body_is_unparseable(self):
        error = map_error(502, b"<html><body>Bad Gateway</body></html>")

        assert isinstance(error, UnparseableResponseError)
        assert error.status == 502
        assert "Bad Gateway" in error.body

    def test_empty_body_is_unparseable(self):
        error = map_error(401, b"")

        assert isinstance(error, UnparseableResponseError)
        assert error.status == 401
        assert error.body == ""

    def test_json_without_error_key_is_unparseable(self):
        assert isinstance(map_error(500, dumps({"message": "nope"})), UnparseableResponseError)

    def test_malformed_missing_field_is_unparseable(self):
        body = {"error": {"status": 400, "code": "INVALID_INPUT", "message": "x", "missing": "minute"}}
        assert isinstance(map_error(400, dumps(body)), UnparseableResponseError)


class TestErrorHierarchy:
    def test_all_errors_share_a_base(self):
        for cls in (ApiError, UnparseableResponseError, SerializationError, DeserializationError):
            assert issubclass(cls, RobotError)

    def test_deserialization_is_a_serialization_error(self):
        assert issubclass(DeserializationError, SerializationError)

    def test_api_error_to_dict(self):
        error = map_error(400, dumps(ERROR_BODY))

        assert error.to_dict() == {
            "error": "invalid input",
            "kind": "ApiError",
            "status": 400,
            "code": "INVALID_INPUT",
            "missing": ["minute", "hour"],
        }

    def test_api_error_str(self):
        error = map_error(404, dumps(error_body(404, "NOT_FOUND", "Not found")))
        assert str(error) == "404 NOT_FOUND: Not found"
