"""Pydantic schemas for signup and login forms."""

import re
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email")
    return value


class SignupForm(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=6)
    role: Literal["user", "worker"]

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)


class LoginForm(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)


def field_errors(exc: ValidationError) -> list[dict]:
    """Flatten a ValidationError into [{"field": ..., "msg": ...}] for forms."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "form"
        message = error["msg"].removeprefix("Value error, ")
        errors.append({"field": field, "msg": message})
    return errors
