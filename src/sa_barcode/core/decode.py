from enum import StrEnum

from sa_barcode.models.records import DriverLicenseRecord, VehicleLicenseRecord

from .drivers_licence import decrypt_and_parse_driver_license
from .keys import KeyRing
from .vehicle_licence import decrypt_and_parse_vehicle_license

__all__ = ["DocumentType", "decode_barcode"]


class DocumentType(StrEnum):
    DRIVERS = "drivers"
    VEHICLE = "vehicle"


def decode_barcode(
    raw: bytes, document_type: DocumentType, keys: KeyRing
) -> DriverLicenseRecord | VehicleLicenseRecord:
    """Decrypt and parse one scanned barcode. Raises DecryptionError."""
    if document_type == DocumentType.DRIVERS:
        return decrypt_and_parse_driver_license(raw, keys)
    return decrypt_and_parse_vehicle_license(raw, keys)
