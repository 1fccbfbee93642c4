"""
Profile Service - Envelope and Response Code Tests
====================================================

What we test:
    ✅ Code table lookups and the 500 fallback for unknown codes
    ✅ payload() message defaulting and data normalization
    ✅ output() status, media type and headers
    ✅ Exceptions default to the table message
"""

import json

import pytest

from profile_service.codes import ResponseCodes, response_codes
from profile_service.envelope import Envelope, ResponseBuilder, responses
from profile_service.exceptions import (
    AuthError,
    InternalError,
    RateLimitExceededError,
    ValidationError,
)


class TestResponseCodes:

    def test_known_code_message(self):
        assert response_codes.message(200) == "Success"
        assert response_codes.message(601) == "Account is disabled"

    def test_unknown_code_falls_back_to_500_message(self):
        assert response_codes.message(999) == "Internal Server Error"

    def test_membership(self):
        assert 429 in response_codes
        assert 418 not in response_codes

    def test_table_is_read_only(self):
        codes = ResponseCodes({"200": "Success"})
        with pytest.raises(TypeError):
            codes._table["200"] = "changed"

    def test_custom_table_without_500(self):
        codes = ResponseCodes({"200": "OK"})
        assert codes.message(404) == "Internal Server Error"


class TestResponseBuilder:

    def setup_method(self):
        self.builder = ResponseBuilder(response_codes)

    def test_payload_uses_table_message_when_missing(self):
        envelope = self.builder.payload(False, 404)

        assert envelope == Envelope(success=False, code=404, message="Not Found", data={})

    def test_payload_keeps_explicit_message(self):
        envelope = self.builder.payload(True, 200, "nft market api")
        assert envelope.message == "nft market api"

    def test_payload_accepts_list_data(self):
        envelope = self.builder.payload(True, 200, None, [{"email": "a@b.c"}])
        assert envelope.data == [{"email": "a@b.c"}]

    def test_timeout_shorthand(self):
        envelope = self.builder.timeout()

        assert envelope.success is False
        assert envelope.code == 408
        assert envelope.message == "Request Timeout"

    def test_not_found_shorthand(self):
        envelope = self.builder.not_found("No service is associated with the url => /x/")

        assert envelope.code == 404
        assert envelope.message.endswith("/x/")

    def test_output_serializes_envelope(self):
        response = self.builder.output(self.builder.payload(True, 200), 200)

        assert response.status_code == 200
        assert response.media_type == "application/json"
        assert json.loads(response.body) == {
            "success": True,
            "code": 200,
            "message": "Success",
            "data": {},
        }

    def test_output_with_headers(self):
        response = responses.output(
            responses.payload(False, 429), 429, headers={"Retry-After": "30"}
        )

        assert response.status_code == 429
        assert response.headers["retry-after"] == "30"


class TestExceptionDefaults:

    def test_auth_error_status_follows_code(self):
        exc = AuthError(403)

        assert exc.code == 403
        assert exc.http_status == 403
        assert exc.message == "Forbidden"

    def test_validation_error_travels_with_http_200(self):
        exc = ValidationError(errors=[{"field": "firstname", "message": "x", "location": "body"}])

        assert exc.code == 400
        assert exc.http_status == 200
        assert exc.success is False
        assert exc.data["errors"][0]["field"] == "firstname"

    def test_rate_limit_error_sets_retry_after(self):
        exc = RateLimitExceededError(retry_after=12)

        assert exc.headers == {"Retry-After": "12"}
        assert exc.message == "Too many requests from this IP, please try again later"

    def test_internal_error_hides_context(self):
        exc = InternalError(context={"error_type": "OperationalError"})

        assert exc.message == "Internal Server Error"
        assert "OperationalError" not in str(exc)
