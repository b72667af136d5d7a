"""Approved-permit payload pushed by the external permit system.

A permit arrives once it has been approved upstream; it is stored as a `pending_permits` row until
staff assign it to a plot.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, field_validator

PermitType = Literal["burial", "exhumation", "niche", "entrance"]


class PermitSubmission(BaseModel):
    """Body of `POST /api/external/permits`."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    permit_id: str = Field(min_length=1)
    permit_type: PermitType

    deceased_first_name: str = Field(min_length=1)
    deceased_middle_name: str | None = None
    deceased_last_name: str = Field(min_length=1)
    deceased_suffix: str | None = None
    date_of_birth: date | None = None
    date_of_death: date
    gender: str | None = None

    applicant_name: str = Field(min_length=1)
    applicant_email: EmailStr | None = None
    applicant_phone: str | None = None
    relationship_to_deceased: str | None = None

    preferred_cemetery_id: int | None = None
    preferred_plot_id: int | None = None
    preferred_section: str | None = None
    preferred_layer: int | None = None

    permit_approved_at: datetime
    permit_expiry_date: date | None = None
    permit_document_url: HttpUrl | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "deceased_middle_name",
        "deceased_suffix",
        "gender",
        "applicant_phone",
        "relationship_to_deceased",
        "preferred_section",
        mode="after",
    )
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        """Optional text sent as an empty string is stored as NULL."""

        return value or None

    @property
    def deceased_name(self) -> str:
        return f"{self.deceased_first_name} {self.deceased_last_name}"
