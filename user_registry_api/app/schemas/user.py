"""
Pydantic models for user data.

Request bodies are validated field by field before anything reaches
the database.  Fields are strict: ``"30"``, ``30.0`` or ``true`` are not
accepted as an age, and numbers are not accepted as strings.  The
internal primary key never appears in these schemas: clients only ever
see the ``uuid`` external identifier, which is matched exactly and
never trimmed.
"""

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")
PHONE_RE = re.compile(r"^[0-9+()\-\s]+$")


class UserBase(BaseModel):
    username: str = Field(..., strict=True, min_length=1, max_length=64, examples=["alice"])
    age: int = Field(..., strict=True, ge=0, le=150, examples=[30])
    email: str = Field(..., strict=True, max_length=254, examples=["a@x.com"])
    phone: str = Field(..., strict=True, min_length=1, max_length=32, examples=["555"])

    @field_validator("username", "email", "phone", mode="before")
    @classmethod
    def strip_profile_text(cls, v: Any) -> Any:
        # Only the profile fields are trimmed; identifiers stay verbatim.
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError("Email must look like local@domain")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise ValueError("Phone may only contain digits, spaces and + - ( )")
        return v


class UserCreate(UserBase):
    """Schema for ``POST /user/add``.

    Unknown keys are ignored, so a client echoing back ``uuid`` or
    ``createAt`` cannot choose its own identifier or timestamp.
    """


class UserUpdate(UserBase):
    """Schema for ``PUT /user/update``.

    ``uuid`` selects the user exactly as ``/user/get`` would; the
    remaining fields replace the stored values.  The identifier itself
    is never changed.
    """

    uuid: str = Field(..., strict=True, min_length=1)


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    uuid: str
    create_at: str = Field(..., alias="createAt")

    model_config = {
        "populate_by_name": True,
    }
