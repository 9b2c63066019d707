"""
Patient data models.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class Patient(BaseModel):
    """
    A patient as known to the front desk.

    Mirrors the subset of the FHIR Patient resource the practice UI uses.
    """

    id: str = Field(description="Record store identifier", min_length=1)
    first_name: str = Field(description="Patient's first name", min_length=1, max_length=100)
    last_name: str = Field(description="Patient's last name", min_length=1, max_length=100)
    phone: str = Field(description="Primary phone number")
    birth_date: date = Field(description="Patient's date of birth")
    email: Optional[str] = Field(default=None, description="Email address")
    flags: List[str] = Field(
        default_factory=list,
        description="Free-text flags shown on the patient card (allergies, risks)",
    )
    returning_patient: Optional[bool] = Field(
        default=None,
        description="Whether the patient has visited the practice before",
    )
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    @field_validator("first_name", "last_name", "phone", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        """Strip surrounding whitespace, keep internal formatting."""
        if v is None:
            return None
        return v.strip()

    @property
    def full_name(self) -> str:
        """Display name, given name first."""
        return f"{self.first_name} {self.last_name}"
