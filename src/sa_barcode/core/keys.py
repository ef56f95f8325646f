from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sa_barcode.shared import Logger
from sa_barcode.shared.config import Decrypt

from .errors import KeyMaterialParseError
from .pem import KeyMaterial, parse_pkcs1_pem
from .transform import BLOCK_SIZE, FINAL_BLOCK_SIZE

__all__ = ["KeyRing", "load_key_ring"]

logger = Logger(__name__).get_logger()

PEM_HEADER = "-----BEGIN"


class KeyRing(BaseModel):
    """The four public keys: two document versions times two block widths."""

    model_config = ConfigDict(frozen=True)

    v1_block128: KeyMaterial
    v1_block74: KeyMaterial
    v2_block128: KeyMaterial
    v2_block74: KeyMaterial

    def for_version(self, version: int) -> tuple[KeyMaterial, KeyMaterial]:
        if version == 1:
            return self.v1_block128, self.v1_block74
        if version == 2:
            return self.v2_block128, self.v2_block74
        raise ValueError(f"Unknown licence version: {version}")


def load_key_ring(settings: Decrypt) -> KeyRing:
    """
    Build the key ring from configuration.

    Any unreadable or malformed key raises KeyMaterialParseError; callers
    are expected to let it abort startup.
    """
    keys = {}
    for name, width in (
        ("v1_pk128", BLOCK_SIZE),
        ("v1_pk74", FINAL_BLOCK_SIZE),
        ("v2_pk128", BLOCK_SIZE),
        ("v2_pk74", FINAL_BLOCK_SIZE),
    ):
        pem = _read_pem(name, getattr(settings, name))
        try:
            key = parse_pkcs1_pem(pem)
        except KeyMaterialParseError as e:
            raise KeyMaterialParseError(f"{name}: {e}") from e

        # Block output is fixed width, so the modulus must fit it
        if key.size > width:
            raise KeyMaterialParseError(
                f"{name}: modulus is {key.size} bytes, block is {width}"
            )

        logger.debug("Loaded %s (%d-bit modulus)", name, key.modulus.bit_length())
        keys[name] = key

    logger.info("Barcode key material loaded")
    return KeyRing(
        v1_block128=keys["v1_pk128"],
        v1_block74=keys["v1_pk74"],
        v2_block128=keys["v2_pk128"],
        v2_block74=keys["v2_pk74"],
    )


def _read_pem(name: str, value: str) -> str:
    if value.startswith(PEM_HEADER):
        return value
    try:
        return Path(value).read_text(encoding="ascii")
    except OSError as e:
        raise KeyMaterialParseError(f"{name}: cannot read {value}: {e}") from e
