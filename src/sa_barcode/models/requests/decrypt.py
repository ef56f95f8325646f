import base64
import binascii
import re
from datetime import UTC, datetime

from pydantic import ConfigDict, Field, field_validator

from sa_barcode.models.records import DriverLicenseRecord, VehicleLicenseRecord

from ..serde_base import SerdeBase

BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+=*$")


class DecryptRequest(SerdeBase):
    model_config = ConfigDict(extra="forbid")

    barcode_data: str = Field(..., min_length=1, description="Base64 barcode bytes")

    @field_validator("barcode_data")
    @classmethod
    def check_base64(cls, value: str) -> str:
        if not BASE64_RE.match(value):
            raise ValueError("Barcode data must be valid base64")
        return value

    def raw_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.barcode_data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Barcode data must be valid base64: {e}") from e


class DecryptResponse(SerdeBase):
    success: bool = True
    data: DriverLicenseRecord | VehicleLicenseRecord
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    status_code: int = 200
