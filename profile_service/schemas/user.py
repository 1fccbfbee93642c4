"""
Profile Service - Pydantic Request Schemas
===========================================

What:  The request-body contract of PUT /user/ and the caller identity
       resolved by the authorization gate.
How:   UserUpdate carries the declarative field predicates the validation
       gate evaluates; every failing predicate is reported, not just the
       first one.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

FIRSTNAME_REQUIRED = "First name is required and cannot be empty"
LASTNAME_REQUIRED = "Last name is required and cannot be empty"


class Identity(BaseModel):
    """The caller, as vouched for by the identity provider."""

    model_config = ConfigDict(frozen=True)

    email: str
    firstname: str = ""
    lastname: str = ""


class UserUpdate(BaseModel):
    """
    Body of PUT /user/.

    Absent optional fields default to an empty string and overwrite the
    stored value, matching what existing clients expect.
    """

    model_config = ConfigDict(extra="ignore")

    # validate_default: an absent name must fail the same way an empty one does
    firstname: str = Field(default="", validate_default=True)
    lastname: str = Field(default="", validate_default=True)
    description: str = ""
    phone: str = ""
    avatar: str = ""

    @field_validator("firstname", "lastname", "description", "phone", "avatar", mode="before")
    @classmethod
    def coerce_to_text(cls, v: Any) -> Any:
        # Form bodies and loosely-typed JSON clients send numbers and nulls
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("firstname")
    @classmethod
    def firstname_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError(FIRSTNAME_REQUIRED)
        return v

    @field_validator("lastname")
    @classmethod
    def lastname_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError(LASTNAME_REQUIRED)
        return v
