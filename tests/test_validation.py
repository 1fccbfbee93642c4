"""
Profile Service - Validation Gate Tests
=========================================

What we test:
    ✅ firstname/lastname predicates, reported together
    ✅ Loose client values (numbers, nulls) are coerced to text
    ✅ Error items carry field, message and location
"""

import pytest
from pydantic import ValidationError as SchemaValidationError

from profile_service.schemas.user import FIRSTNAME_REQUIRED, LASTNAME_REQUIRED, UserUpdate
from profile_service.validation import format_errors


def errors_for(body):
    with pytest.raises(SchemaValidationError) as exc_info:
        UserUpdate.model_validate(body)
    return format_errors(exc_info.value)


class TestUserUpdate:

    def test_valid_body(self):
        changes = UserUpdate.model_validate({"firstname": "Ada", "lastname": "Lovelace"})

        assert changes.firstname == "Ada"
        assert changes.description == ""
        assert changes.phone == ""
        assert changes.avatar == ""

    def test_empty_firstname(self):
        errors = errors_for({"firstname": "", "lastname": "L"})

        assert errors == [
            {"field": "firstname", "message": FIRSTNAME_REQUIRED, "location": "body"}
        ]

    def test_missing_names_reported_together(self):
        errors = errors_for({})

        assert [e["field"] for e in errors] == ["firstname", "lastname"]
        assert [e["message"] for e in errors] == [FIRSTNAME_REQUIRED, LASTNAME_REQUIRED]

    def test_null_lastname_is_empty(self):
        errors = errors_for({"firstname": "Ada", "lastname": None})
        assert [e["field"] for e in errors] == ["lastname"]

    def test_numbers_become_text(self):
        changes = UserUpdate.model_validate(
            {"firstname": "Ada", "lastname": "L", "phone": 5551234, "description": 1.5}
        )

        assert changes.phone == "5551234"
        assert changes.description == "1.5"

    def test_unknown_fields_are_ignored(self):
        changes = UserUpdate.model_validate(
            {"firstname": "Ada", "lastname": "L", "email": "evil@example.com", "status": 0}
        )

        assert not hasattr(changes, "email")
        assert not hasattr(changes, "status")

    def test_non_text_value_is_reported(self):
        errors = errors_for({"firstname": "Ada", "lastname": "L", "avatar": ["1.jpg"]})

        assert errors[0]["field"] == "avatar"
        assert errors[0]["location"] == "body"
