"""
Driver's licence barcodes.

A scanned licence carries a 6-byte header whose first four bytes identify
the document version, followed by 714 bytes of block-transformed payload.
The recovered plaintext holds a marker, two section lengths, a string
section delimited by 0xE0/0xE1 and a packed-BCD section of codes and dates.
"""

from sa_barcode.models.records import DriverLicenseRecord, VehicleLicenseEntry
from sa_barcode.shared import Logger

from .errors import DecryptionError
from .keys import KeyRing
from .transform import PAYLOAD_SIZE, bytes_to_nibbles, decrypt_six_block_payload

__all__ = [
    "decrypt_and_parse_driver_license",
    "decrypt_driver_license",
    "find_payload_start",
    "find_version_signature",
    "parse_date",
    "parse_date_or_none",
    "parse_driver_license",
    "split_fields",
]

logger = Logger(__name__).get_logger()

HEADER_SIZE = 6
RECORD_SIZE = HEADER_SIZE + PAYLOAD_SIZE  # 720

SIGNATURE_START = 0x01
SIGNATURE_END = 0x45
VERSION_SIGNATURES = {
    (0xE1, 0x02): 1,
    (0x9B, 0x09): 2,
}

PAYLOAD_MARKER = bytes([0x01, 0x02, 0x03, 0x04, 0x05])
MARKER_SEARCH_LIMIT = 40
MIN_PLAINTEXT_SIZE = 100
SECTION1_OFFSET = 15
MIN_FIELD_COUNT = 15
MIN_NIBBLE_COUNT = 40

FIELD_DELIMITER = 0xE0
EMPTY_FIELD = 0xE1
ABSENT_DATE = 0xA

GENDER_CODES = {"01": "M", "02": "F", "M": "M", "F": "F"}


# ================================================================================
#       Phase 1: locate and decrypt
# ================================================================================
def find_version_signature(raw: bytes) -> tuple[int, int]:
    """Return ``(offset, version)`` of the first version signature in ``raw``."""
    if len(raw) < 4:
        raise DecryptionError("Data too short to contain version signature")

    for i in range(len(raw) - 3):
        if raw[i] != SIGNATURE_START or raw[i + 3] != SIGNATURE_END:
            continue
        version = VERSION_SIGNATURES.get((raw[i + 1], raw[i + 2]))
        if version is not None:
            return i, version

    raise DecryptionError("Unable to find version signature in barcode data")


def decrypt_driver_license(raw: bytes, keys: KeyRing) -> tuple[bytes, int]:
    offset, version = find_version_signature(raw)
    logger.debug("Found version %d signature at offset %d", version, offset)

    remaining = len(raw) - offset
    if remaining < RECORD_SIZE:
        raise DecryptionError(
            "Not enough data after version signature. "
            f"Found: {remaining} bytes, need: {RECORD_SIZE}"
        )

    payload = raw[offset + HEADER_SIZE : offset + RECORD_SIZE]
    key128, key74 = keys.for_version(version)
    return decrypt_six_block_payload(payload, key128, key74), version


# ================================================================================
#       Phase 2: structured decode
# ================================================================================
def find_payload_start(data: bytes) -> int:
    index = data.find(PAYLOAD_MARKER, 0, MARKER_SEARCH_LIMIT + len(PAYLOAD_MARKER) - 1)
    if index == -1:
        raise DecryptionError("License header signature not found")
    return index


def split_fields(section: bytes) -> list[str]:
    """
    Split the string section into fields.

    0xE0 ends a non-empty field. 0xE1 ends any pending field and then
    stands for one empty field itself.
    """
    fields = []
    current = bytearray()

    for byte in section:
        if byte == FIELD_DELIMITER:
            if current:
                fields.append(current.decode("utf-8", errors="replace"))
                current = bytearray()
        elif byte == EMPTY_FIELD:
            if current:
                fields.append(current.decode("utf-8", errors="replace"))
                current = bytearray()
            fields.append("")
        else:
            current.append(byte)

    if current:
        fields.append(current.decode("utf-8", errors="replace"))

    return fields


def parse_date(nibbles: list[int], index: int) -> str:
    """Decode eight BCD nibbles at ``index`` as ``YYYY-MM-DD``."""
    if index + 7 >= len(nibbles):
        return ""

    digits = nibbles[index : index + 8]
    year = digits[0] * 1000 + digits[1] * 100 + digits[2] * 10 + digits[3]
    month = digits[4] * 10 + digits[5]
    day = digits[6] * 10 + digits[7]
    return f"{year}-{month:02d}-{day:02d}"


def parse_date_or_none(nibbles: list[int], index: int) -> tuple[str | None, int]:
    """Return the date at ``index`` and the number of nibbles it used."""
    if index >= len(nibbles):
        return None, 0
    if nibbles[index] == ABSENT_DATE:
        return None, 1
    return parse_date(nibbles, index), 8


def _two_digits(nibbles: list[int], index: int) -> str:
    first = nibbles[index] if index < len(nibbles) else 0
    second = nibbles[index + 1] if index + 1 < len(nibbles) else 0
    return f"{first}{second}"


def parse_driver_license(data: bytes, version: int) -> DriverLicenseRecord:
    if len(data) < MIN_PLAINTEXT_SIZE:
        raise DecryptionError("Decrypted data too small")

    start = find_payload_start(data)
    if start + 10 >= len(data):
        raise DecryptionError("Invalid payload header")

    section2_length = data[start + 7]
    section1_length = data[start + 10]

    section1_offset = start + SECTION1_OFFSET
    section2_offset = section1_offset + section1_length

    if section2_offset > len(data):
        raise DecryptionError("Section 1 overflow")
    if section2_offset + section2_length > len(data):
        raise DecryptionError("Section 2 overflow")

    # Section 1: strings
    fields = split_fields(data[section1_offset:section2_offset])
    logger.debug("String section holds %d fields", len(fields))
    if len(fields) < MIN_FIELD_COUNT:
        raise DecryptionError(
            f"Invalid string section. Expected >= {MIN_FIELD_COUNT} fields, "
            f"got {len(fields)}"
        )

    vehicle_codes = fields[0:4]
    prdp_field = fields[6]
    vehicle_restrictions = fields[9:13]

    # Section 2: packed BCD
    nibbles = bytes_to_nibbles(data[section2_offset : section2_offset + section2_length])
    if len(nibbles) < MIN_NIBBLE_COUNT:
        raise DecryptionError("Invalid nibble stream")

    cursor = 0
    id_number_type = _two_digits(nibbles, cursor)
    cursor += 2

    vehicle_issue_dates = []
    for _ in range(4):
        issue_date, used = parse_date_or_none(nibbles, cursor)
        vehicle_issue_dates.append(issue_date)
        cursor += used

    driver_restrictions = _two_digits(nibbles, cursor)
    cursor += 2

    prdp_expiry, used = parse_date_or_none(nibbles, cursor)
    cursor += used

    license_issue_number = _two_digits(nibbles, cursor)
    cursor += 2

    date_of_birth = parse_date(nibbles, cursor)
    cursor += 8
    valid_from = parse_date(nibbles, cursor)
    cursor += 8
    valid_to = parse_date(nibbles, cursor)
    cursor += 8

    gender = GENDER_CODES.get(_two_digits(nibbles, cursor))

    vehicle_licenses = [
        VehicleLicenseEntry(code=code, restriction=restriction, first_issue_date=issued)
        for code, restriction, issued in zip(
            vehicle_codes, vehicle_restrictions, vehicle_issue_dates
        )
        if issued is not None and code != ""
    ]

    return DriverLicenseRecord(
        version=version,
        vehicle_codes=vehicle_codes,
        surname=fields[4],
        initials=fields[5],
        professional_driving_permit_codes=prdp_field.split(",") if prdp_field else None,
        id_country=fields[7],
        license_country=fields[8],
        vehicle_restrictions=vehicle_restrictions,
        license_number=fields[13],
        id_number=fields[14],
        id_number_type=id_number_type,
        date_of_birth=date_of_birth,
        gender=gender,
        driver_restrictions=driver_restrictions,
        license_issue_number=license_issue_number,
        license_start_date=valid_from,
        expiry_date=valid_to,
        professional_driving_permit_expiry=prdp_expiry,
        vehicle_licenses=vehicle_licenses or None,
    )


def decrypt_and_parse_driver_license(raw: bytes, keys: KeyRing) -> DriverLicenseRecord:
    plaintext, version = decrypt_driver_license(raw, keys)
    return parse_driver_license(plaintext, version)
