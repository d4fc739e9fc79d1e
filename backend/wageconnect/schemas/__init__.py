"""Pydantic schemas package."""

from wageconnect.schemas.auth import LoginForm, SignupForm, field_errors
from wageconnect.schemas.job import JobForm

__all__ = [
    # Auth
    "LoginForm",
    "SignupForm",
    "field_errors",
    # Job
    "JobForm",
]
