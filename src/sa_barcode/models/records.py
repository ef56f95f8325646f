from typing import Literal

from pydantic import ConfigDict

from .serde_base import SerdeBase

__all__ = [
    "DriverLicenseRecord",
    "Gender",
    "VehicleLicenseEntry",
    "VehicleLicenseRecord",
]

Gender = Literal["M", "F"]


class RecordBase(SerdeBase):
    model_config = ConfigDict(frozen=True)


class VehicleLicenseEntry(RecordBase):
    code: str
    restriction: str
    first_issue_date: str


class DriverLicenseRecord(RecordBase):
    version: int
    vehicle_codes: list[str]
    surname: str
    initials: str
    professional_driving_permit_codes: list[str] | None
    id_country: str
    license_country: str
    vehicle_restrictions: list[str]
    license_number: str
    id_number: str
    id_number_type: str | None
    date_of_birth: str | None
    gender: Gender | None
    driver_restrictions: str | None
    license_issue_number: str | None
    license_start_date: str | None
    expiry_date: str | None
    professional_driving_permit_expiry: str | None
    vehicle_licenses: list[VehicleLicenseEntry] | None


class VehicleLicenseRecord(RecordBase):
    """Best-effort extraction; every field but the registration may be absent."""

    version: int = 1
    registration_number: str = "UNKNOWN"
    vin: str | None = None
    make: str | None = None
    model: str | None = None
    license_disc_expiry: str | None = None
    owner_id_number: str | None = None
    owner_name: str | None = None
    engine_number: str | None = None
    color: str | None = None
    vehicle_type: str | None = None
