"""Pydantic schema for the job form."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobForm(BaseModel):
    """Fields a poster submits when creating or editing a job."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    wage: float = Field(ge=0, allow_inf_nan=False)
    location: str = Field(min_length=1, max_length=255)
    deadline: date | None = None

    @field_validator("deadline", mode="before")
    @classmethod
    def blank_deadline(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

