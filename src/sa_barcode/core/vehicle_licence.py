"""
Vehicle licence (disc) barcodes.

Unlike driver's licences these carry no fixed layout we can rely on, so
the recovered payload is tokenised and each field is picked out by a
heuristic. Later stages exclude values claimed by earlier ones, so the
stages run in a fixed order over a shared context.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from sa_barcode.models.records import VehicleLicenseRecord
from sa_barcode.shared import Logger

from .errors import DecryptionError
from .keys import KeyRing
from .transform import PAYLOAD_SIZE, bytes_to_nibbles, decrypt_six_block_payload

__all__ = [
    "VehicleContext",
    "decrypt_and_parse_vehicle_license",
    "decrypt_vehicle_license",
    "parse_vehicle_license",
    "tokenize",
]

logger = Logger(__name__).get_logger()

HEADER_SIZE = 6
RECORD_SIZE = HEADER_SIZE + PAYLOAD_SIZE
PLAINTEXT_THRESHOLD = 300
MODEL_LOOKAHEAD = 3

REGISTRATION_RE = re.compile(r"^[A-Z]{2,4}\d{3,6}[A-Z]{0,2}$")
VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
LETTERS_RE = re.compile(r"^[A-Z\s]+$")
ID_NUMBER_RE = re.compile(r"^\d{13}$")
LONG_DATE_RE = re.compile(r"^\d{4}[-/.]\d{2}[-/.]\d{2}$")
SHORT_DATE_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{2})$")
NORMALISED_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
MODEL_CHARS_RE = re.compile(r"^[A-Z0-9\s-]+$")
CODE_LIKE_RE = re.compile(r"^(?=.*[A-Z])(?=.*\d)[A-Z0-9-]+$")
ENGINE_RE = re.compile(r"^[A-Z0-9]{8,20}$")
LETTER_AND_DIGIT_RE = re.compile(r"(?=.*[A-Z])(?=.*\d)")

MAKES = [
    "TOYOTA", "FORD", "VOLKSWAGEN", "VW", "BMW", "MERCEDES", "AUDI", "NISSAN",
    "HYUNDAI", "KIA", "MAZDA", "HONDA", "CHEVROLET", "RENAULT", "PEUGEOT",
    "CITROEN", "SUBARU", "SUZUKI", "ISUZU", "MITSUBISHI",
]  # fmt: skip

# English and Afrikaans
COLORS = [
    "WHITE", "BLACK", "SILVER", "GREY", "GRAY", "BLUE", "RED", "GREEN",
    "YELLOW", "BROWN", "WIT", "SWART", "SILWER", "GRYS", "BLOU", "ROOI",
    "GROEN", "GEEL", "BRUIN",
]  # fmt: skip

BODY_STYLES = ["hatch", "sedan", "bus", "luikrug", "bakkie", "truck"]

FIELD_DELIMITER = 0xE0
FIELD_SEPARATOR = 0xE1


# ================================================================================
#       Phase 1: decrypt
# ================================================================================
def _decrypt_with(raw: bytes, keys: KeyRing, version: int) -> bytes:
    key128, key74 = keys.for_version(version)
    encrypted = raw[-RECORD_SIZE:][HEADER_SIZE:]
    return decrypt_six_block_payload(encrypted, key128, key74)


def decrypt_vehicle_license(raw: bytes, keys: KeyRing) -> bytes:
    """
    Recover the vehicle licence payload.

    Short inputs are taken to be plaintext already. Longer ones are
    decrypted from their last 720 bytes with version 1 keys, falling back
    to version 2 keys.
    """
    if len(raw) < PLAINTEXT_THRESHOLD:
        logger.debug("Treating %d byte payload as plaintext", len(raw))
        return raw

    try:
        return _decrypt_with(raw, keys, 1)
    except DecryptionError as e:
        logger.debug("Version 1 keys failed (%s), retrying with version 2", e)
        return _decrypt_with(raw, keys, 2)


# ================================================================================
#       Phase 2: tokenise
# ================================================================================
def tokenize(data: bytes) -> list[str]:
    decoded = data.decode("utf-8", errors="replace")

    if "%" in decoded:
        return [token.strip() for token in decoded.split("%") if token.strip()]

    tokens = []
    current = bytearray()
    for byte in data:
        if byte == FIELD_DELIMITER or byte == FIELD_SEPARATOR:
            if current:
                tokens.append(current.decode("utf-8", errors="replace").strip())
                current = bytearray()
        else:
            current.append(byte)

    if current:
        tokens.append(current.decode("utf-8", errors="replace").strip())

    return [token for token in tokens if token]


# ================================================================================
#       Phase 3: classify
# ================================================================================
@dataclass
class VehicleContext:
    """Tokens plus every field extracted so far."""

    tokens: list[str]
    nibbles: list[int] = field(default_factory=list)

    registration: str = ""
    vin: str = ""
    make: str = ""
    color: str = ""
    vehicle_type: str = ""
    expiry: str | None = None
    model: str = ""
    engine: str = ""
    owner_name: str = ""
    owner_id: str = ""

    def extracted(self) -> list[str]:
        return [
            self.make,
            self.model,
            self.registration,
            self.vin,
            self.color,
            self.vehicle_type,
            self.expiry or "",
        ]

    def index_of(self, value: str) -> int:
        lookup = value.strip().upper()
        if not lookup:
            return -1
        for i, token in enumerate(self.tokens):
            if token.strip().upper() == lookup:
                return i
        return -1


def _first(tokens: list[str], predicate: Callable[[str], bool]) -> str:
    return next((token for token in tokens if predicate(token)), "")


def _equals_any(value: str, candidates: list[str]) -> bool:
    normalized = value.strip().upper()
    return any(candidate.strip().upper() == normalized for candidate in candidates)


def _is_vin(token: str) -> bool:
    return bool(VIN_RE.match(token.strip().upper()))


def _is_registration(token: str) -> bool:
    return bool(REGISTRATION_RE.match(token.strip().upper()))


def _is_date(token: str) -> bool:
    normalized = token.strip().replace("/", "-").replace(".", "-")
    return bool(NORMALISED_DATE_RE.match(normalized))


def _looks_like_identifier(token: str) -> bool:
    return _is_vin(token) or _is_registration(token) or _is_date(token)


def is_model_candidate(token: str, ctx: VehicleContext) -> bool:
    upper = token.upper()
    if not 2 <= len(token) <= 20:
        return False
    if not MODEL_CHARS_RE.match(upper) or "/" in token:
        return False
    if _equals_any(token, ctx.extracted()) or _looks_like_identifier(token):
        return False
    if token.isdigit():
        return False
    # Long mixed letter/digit runs are codes, not model names
    if " " not in token and len(token) >= 8 and CODE_LIKE_RE.match(upper):
        return False
    return True


def is_engine_candidate(token: str, ctx: VehicleContext) -> bool:
    upper = token.upper()
    if not ENGINE_RE.match(upper):
        return False
    if _equals_any(token, ctx.extracted()) or _looks_like_identifier(token):
        return False
    return bool(LETTER_AND_DIGIT_RE.match(upper))


def find_registration(ctx: VehicleContext) -> None:
    ctx.registration = _first(ctx.tokens, lambda s: bool(REGISTRATION_RE.match(s.strip())))


def find_vin(ctx: VehicleContext) -> None:
    ctx.vin = _first(ctx.tokens, lambda s: bool(VIN_RE.match(s.strip())))


def find_make(ctx: VehicleContext) -> None:
    ctx.make = _first(ctx.tokens, lambda s: s.upper() in MAKES) or _first(
        ctx.tokens, lambda s: 3 < len(s) < 15 and bool(LETTERS_RE.match(s.upper()))
    )


def find_color(ctx: VehicleContext) -> None:
    ctx.color = _first(
        ctx.tokens, lambda s: any(color in s.upper() for color in COLORS)
    )


def find_vehicle_type(ctx: VehicleContext) -> None:
    ctx.vehicle_type = _first(
        ctx.tokens, lambda s: any(style in s.lower() for style in BODY_STYLES)
    )


def _expiry_from_tokens(tokens: list[str]) -> str | None:
    for token in tokens:
        token = token.strip()
        if LONG_DATE_RE.match(token):
            return token.replace("/", "-").replace(".", "-")

    for token in tokens:
        match = SHORT_DATE_RE.match(token.strip())
        if match:
            year = int(match.group(1))
            full_year = 2000 + year if year < 50 else 1900 + year
            return f"{full_year}-{match.group(2)}-{match.group(3)}"

    return None


def _expiry_from_nibbles(nibbles: list[int]) -> str | None:
    for i in range(len(nibbles) - 7):
        digits = nibbles[i : i + 8]
        year = digits[0] * 1000 + digits[1] * 100 + digits[2] * 10 + digits[3]
        month = digits[4] * 10 + digits[5]
        day = digits[6] * 10 + digits[7]
        if 2000 <= year <= 2100 and 1 <= month <= 12 and 1 <= day <= 31:
            return f"{year}-{month:02d}-{day:02d}"
    return None


def find_expiry(ctx: VehicleContext) -> None:
    ctx.expiry = _expiry_from_tokens(ctx.tokens) or _expiry_from_nibbles(ctx.nibbles)


def find_model(ctx: VehicleContext) -> None:
    make_index = ctx.index_of(ctx.make)
    if make_index != -1:
        for token in ctx.tokens[make_index + 1 : make_index + 1 + MODEL_LOOKAHEAD]:
            token = token.strip()
            if is_model_candidate(token, ctx):
                ctx.model = token
                return

    ctx.model = _first(
        [token.strip() for token in ctx.tokens], lambda s: is_model_candidate(s, ctx)
    )


def find_engine(ctx: VehicleContext) -> None:
    vin_index = ctx.index_of(ctx.vin)
    if vin_index != -1:
        for token in ctx.tokens[vin_index + 1 :]:
            token = token.strip()
            if is_engine_candidate(token, ctx):
                ctx.engine = token
                return

    ctx.engine = _first(
        [token.strip() for token in reversed(ctx.tokens)],
        lambda s: is_engine_candidate(s, ctx),
    )


def find_owner_name(ctx: VehicleContext) -> None:
    ctx.owner_name = _first(ctx.tokens, lambda s: " " in s and len(s) > 5)


def find_owner_id(ctx: VehicleContext) -> None:
    ctx.owner_id = _first(ctx.tokens, lambda s: bool(ID_NUMBER_RE.match(s)))


PIPELINE: list[Callable[[VehicleContext], None]] = [
    find_registration,
    find_vin,
    find_make,
    find_color,
    find_vehicle_type,
    find_expiry,
    find_model,
    find_engine,
    find_owner_name,
    find_owner_id,
]


def parse_vehicle_license(data: bytes) -> VehicleLicenseRecord:
    ctx = VehicleContext(tokens=tokenize(data), nibbles=bytes_to_nibbles(data))
    logger.debug("Vehicle payload tokenised into %d tokens", len(ctx.tokens))

    for stage in PIPELINE:
        stage(ctx)

    return VehicleLicenseRecord(
        version=1,
        registration_number=ctx.registration or "UNKNOWN",
        vin=ctx.vin or None,
        engine_number=ctx.engine or None,
        make=ctx.make or None,
        model=ctx.model or None,
        color=ctx.color or None,
        vehicle_type=ctx.vehicle_type or None,
        owner_name=ctx.owner_name or None,
        owner_id_number=ctx.owner_id or None,
        license_disc_expiry=ctx.expiry,
    )


def decrypt_and_parse_vehicle_license(raw: bytes, keys: KeyRing) -> VehicleLicenseRecord:
    return parse_vehicle_license(decrypt_vehicle_license(raw, keys))
