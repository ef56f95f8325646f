import re
import textwrap

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from cryptography.hazmat.primitives.serialization import load_pem_public_key
from pydantic import BaseModel, ConfigDict

from .errors import KeyMaterialParseError

__all__ = ["KeyMaterial", "parse_pkcs1_pem"]

PEM_BEGIN = "-----BEGIN RSA PUBLIC KEY-----"
PEM_END = "-----END RSA PUBLIC KEY-----"

_ARMOUR = re.compile(r"-----(BEGIN|END) RSA PUBLIC KEY-----")
_WHITESPACE = re.compile(r"\s+")


class KeyMaterial(BaseModel):
    model_config = ConfigDict(frozen=True)

    modulus: int
    exponent: int

    @property
    def size(self) -> int:
        """Modulus width in bytes."""
        return (self.modulus.bit_length() + 7) // 8


def parse_pkcs1_pem(pem: str) -> KeyMaterial:
    """
    Parse a PKCS#1 ``RSA PUBLIC KEY`` PEM into its modulus and exponent.

    The body may be wrapped at any width or sit on the armour line itself.
    Raises KeyMaterialParseError for anything that is not a well-formed
    RSA public key.
    """
    try:
        key = load_pem_public_key(_normalise(pem).encode("ascii"))
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyMaterialParseError(f"Invalid RSA public key: {e}") from e

    if not isinstance(key, RSAPublicKey):
        raise KeyMaterialParseError(f"Not an RSA public key: {type(key).__name__}")

    numbers = key.public_numbers()
    return KeyMaterial(modulus=numbers.n, exponent=numbers.e)


def _normalise(pem: str) -> str:
    body = _WHITESPACE.sub("", _ARMOUR.sub("", pem))
    if not body.isascii():
        raise KeyMaterialParseError("Invalid RSA public key: non-ASCII PEM body")
    return "\n".join([PEM_BEGIN, *textwrap.wrap(body, 64), PEM_END, ""])
