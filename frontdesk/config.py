"""
Configuration management for the Ignis front-desk service.

This module provides centralized configuration using Pydantic settings
for type-safe environment variable management.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Record store (Aidbox FHIR R4) Configuration
    record_store_url: str = Field(
        default="https://ignis.cognovis.de/fhir", alias="AIDBOX_FHIR_URL"
    )
    record_store_user: str = Field(default="admin", alias="AIDBOX_USER")
    record_store_password: str = Field(default="ignis2026", alias="AIDBOX_PASSWORD")
    record_store_timeout: float = Field(default=20.0, alias="RECORD_STORE_TIMEOUT")

    # Application Configuration
    clinic_name: str = Field(default="Praxis Ignis", alias="CLINIC_NAME")
    clinic_timezone: str = Field(default="Europe/Berlin", alias="CLINIC_TIMEZONE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Server Configuration
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=3000, alias="PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Concurrency Settings
    connection_pool_size: int = Field(default=20, alias="CONNECTION_POOL_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("record_store_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origin_list(self) -> List[str]:
        """Comma separated CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once,
    improving performance for repeated access.
    """
    return Settings()


# Demo patients - fixed so that ids stay stable across setup/clear cycles
DEMO_PATIENTS: List[dict] = [
    {"first_name": "Hans", "last_name": "Müller", "phone": "+49 170 1234567",
     "birth_date": "1985-03-15", "email": "hans.mueller@example.com",
     "flags": ["Herzpatient"], "returning_patient": True},
    {"first_name": "Maria", "last_name": "Weber", "phone": "+49 171 9876543",
     "birth_date": "1972-08-22", "returning_patient": True},
    {"first_name": "Thomas", "last_name": "Becker", "phone": "+49 172 5555555",
     "birth_date": "1990-12-01", "flags": ["Asthma"]},
    {"first_name": "Sabine", "last_name": "Schulz", "phone": "+49 173 2223344",
     "birth_date": "1968-05-09", "returning_patient": True},
    {"first_name": "Jonas", "last_name": "Hoffmann", "phone": "+49 174 8889900",
     "birth_date": "2001-01-27", "email": "jonas.hoffmann@example.com"},
    {"first_name": "Petra", "last_name": "Wagner", "phone": "+49 175 3456789",
     "birth_date": "1955-11-30", "flags": ["Diabetes Typ 2", "Marcumar"],
     "returning_patient": True},
    {"first_name": "Lukas", "last_name": "Schäfer", "phone": "+49 176 1112233",
     "birth_date": "1979-07-04"},
    {"first_name": "Anna", "last_name": "Koch", "phone": "+49 177 4445566",
     "birth_date": "1994-02-18", "email": "anna.koch@example.com"},
    {"first_name": "Felix", "last_name": "Richter", "phone": "+49 178 7778899",
     "birth_date": "1988-09-12", "flags": ["Penicillinallergie"]},
    {"first_name": "Claudia", "last_name": "Klein", "phone": "+49 179 6665544",
     "birth_date": "1963-04-21", "returning_patient": True},
    {"first_name": "Mehmet", "last_name": "Yilmaz", "phone": "+49 151 2345678",
     "birth_date": "1982-10-03"},
]

# Queue script for today, one entry per demo patient (same order)
DEMO_QUEUE_SCRIPT: List[dict] = [
    {"status": "waiting", "priority": "emergency", "reason": "Brustschmerzen"},
    {"status": "waiting", "priority": "urgent", "reason": "Starke Rückenschmerzen"},
    {"status": "waiting", "priority": "urgent", "reason": "Atemnot"},
    {"status": "waiting", "priority": "routine", "reason": "Kopfschmerzen"},
    {"status": "waiting", "priority": "routine", "reason": "Blutdruckkontrolle"},
    {"status": "waiting", "priority": "routine", "reason": "EKG-Kontrolle"},
    {"status": "waiting", "priority": "routine", "reason": "Laborergebnisse besprechen"},
    {"status": "expected", "priority": "routine", "reason": "Hautausschlag"},
    {"status": "expected", "priority": "routine", "reason": "Impfung"},
    {"status": "expected", "priority": "routine", "reason": "Allergietest"},
    {"status": "expected", "priority": "routine", "reason": "Vorsorgeuntersuchung"},
]

DEMO_PRACTITIONERS: List[dict] = [
    {"prefix": "Dr.", "first_name": "Anna", "last_name": "Schmidt"},
    {"prefix": "Dr.", "first_name": "Markus", "last_name": "Braun"},
    {"prefix": "Dr.", "first_name": "Leyla", "last_name": "Demir"},
]

# Opening hours in clinic time, split into 30 minute slots
DEMO_DAY_START_HOUR = 8
DEMO_DAY_END_HOUR = 18
DEMO_SLOT_MINUTES = 30

