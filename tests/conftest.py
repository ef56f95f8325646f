"""
Shared fixtures: real key material and synthetic licence barcodes.

The 128-byte blocks use 1024-bit RSA keys generated with `cryptography`.
The 74-byte block needs a modulus under 592 bits, which `cryptography`
will not generate, so it is built from two Mersenne primes.
"""

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from sa_barcode.core import KeyMaterial, KeyRing
from sa_barcode.core.transform import BLOCK_SIZE, FINAL_BLOCK_OFFSET, FINAL_BLOCK_SIZE

PUBLIC_EXPONENT = 65537

SIGNATURE_V1 = bytes([0x01, 0xE1, 0x02, 0x45])
SIGNATURE_V2 = bytes([0x01, 0x9B, 0x09, 0x45])

MARKER = bytes([0x01, 0x02, 0x03, 0x04, 0x05])

DRIVER_FIELDS = [
    "B", "EB", "", "",           # vehicle codes
    "SMITH",                     # surname
    "JA",                        # initials
    "",                          # PrDP codes
    "ZA",                        # ID country
    "ZA",                        # licence country
    "0", "0", "", "",            # vehicle restrictions
    "40960000ABCD",              # licence number
    "8001015009087",             # ID number
]  # fmt: skip

FIXTURE_TOKENS = [
    "ABC123GP",
    "WHITE",
    "TOYOTA",
    "COROLLA",
    "1HGCM82633A004352",
    "2025-06-30",
]


# ================================================================================
#       PEM
# ================================================================================
def der_for(modulus: int, exponent: int) -> bytes:
    """PKCS#1 DER for an RSA public key."""
    public_key = rsa.RSAPublicNumbers(exponent, modulus).public_key()
    return public_key.public_bytes(serialization.Encoding.DER, serialization.PublicFormat.PKCS1)


def to_pem(der: bytes) -> str:
    b64 = base64.b64encode(der).decode()
    lines = [b64[i : i + 64] for i in range(0, len(b64), 64)]
    return "\n".join(
        ["-----BEGIN RSA PUBLIC KEY-----", *lines, "-----END RSA PUBLIC KEY-----", ""]
    )


def pem_for(modulus: int, exponent: int) -> str:
    return to_pem(der_for(modulus, exponent))


# ================================================================================
#       Key pairs
# ================================================================================
class BlockKey:
    """Public key material plus the private exponent used to build ciphertext."""

    def __init__(self, modulus: int, exponent: int, private_exponent: int):
        self.material = KeyMaterial(modulus=modulus, exponent=exponent)
        self.private_exponent = private_exponent

    @property
    def pem(self) -> str:
        return pem_for(self.material.modulus, self.material.exponent)

    def encrypt(self, block: bytes) -> bytes:
        value = pow(int.from_bytes(block, "big"), self.private_exponent, self.material.modulus)
        return value.to_bytes(len(block), "big")


def rsa_block_key() -> BlockKey:
    private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=1024)
    numbers = private_key.private_numbers()
    return BlockKey(numbers.public_numbers.n, numbers.public_numbers.e, numbers.d)


def mersenne_block_key(q_exponent: int) -> BlockKey:
    p = 2**521 - 1
    q = 2**q_exponent - 1
    private_exponent = pow(PUBLIC_EXPONENT, -1, (p - 1) * (q - 1))
    return BlockKey(p * q, PUBLIC_EXPONENT, private_exponent)


class KeySet:
    def __init__(self):
        self.v1_128 = rsa_block_key()
        self.v1_74 = mersenne_block_key(61)
        self.v2_128 = rsa_block_key()
        self.v2_74 = mersenne_block_key(31)

    def ring(self) -> KeyRing:
        return KeyRing(
            v1_block128=self.v1_128.material,
            v1_block74=self.v1_74.material,
            v2_block128=self.v2_128.material,
            v2_block74=self.v2_74.material,
        )

    def pems(self) -> dict[str, str]:
        return {
            "v1_pk128": self.v1_128.pem,
            "v1_pk74": self.v1_74.pem,
            "v2_pk128": self.v2_128.pem,
            "v2_pk74": self.v2_74.pem,
        }

    def encrypt_payload(self, plaintext: bytes, version: int = 1) -> bytes:
        key128, key74 = (
            (self.v1_128, self.v1_74) if version == 1 else (self.v2_128, self.v2_74)
        )
        blocks = [
            key128.encrypt(plaintext[offset : offset + BLOCK_SIZE])
            for offset in range(0, FINAL_BLOCK_OFFSET, BLOCK_SIZE)
        ]
        blocks.append(key74.encrypt(plaintext[FINAL_BLOCK_OFFSET:]))
        return b"".join(blocks)


# ================================================================================
#       Synthetic plaintexts
# ================================================================================
def encode_fields(fields: list[str]) -> bytes:
    out = bytearray()
    for value in fields:
        if value == "":
            out.append(0xE1)
        else:
            out += value.encode() + b"\xe0"
    return bytes(out)


def percent_payload(tokens: list[str]) -> bytes:
    return ("%" + "%".join(tokens) + "%").encode()


def pack_nibbles(nibbles: list[int]) -> bytes:
    if len(nibbles) % 2:
        nibbles = [*nibbles, 0]
    return bytes((hi << 4) | lo for hi, lo in zip(nibbles[::2], nibbles[1::2]))


def date_nibbles(value: str) -> list[int]:
    return [int(c) for c in value.replace("-", "")]


def driver_nibbles() -> list[int]:
    return [
        0, 2,                                   # ID number type
        *date_nibbles("2010-05-12"),            # code B first issue
        *date_nibbles("2015-08-01"),            # code EB first issue
        0xA, 0xA,                               # no third or fourth code
        0, 0,                                   # driver restrictions
        0xA,                                    # no PrDP
        0, 3,                                   # licence issue number
        *date_nibbles("1980-01-01"),            # birth
        *date_nibbles("2020-06-15"),            # valid from
        *date_nibbles("2025-06-14"),            # valid to
        0, 1,                                   # gender
    ]  # fmt: skip


def pad_payload(body: bytes) -> bytes:
    """
    Lay ``body`` out at the start of a 714-byte plaintext.

    Every block keeps a zero leading byte (eight for the short final block)
    so each block value stays below its modulus.
    """
    assert len(body) < BLOCK_SIZE
    plaintext = bytearray(b"\x00" + body)
    plaintext += bytes(BLOCK_SIZE - len(plaintext))
    for block in range(1, 5):
        plaintext += b"\x00" + bytes((block * 16 + i) % 256 for i in range(BLOCK_SIZE - 1))
    plaintext += bytes(8) + b"TAIL" * 16 + b"\x42\x42"
    assert len(plaintext) == FINAL_BLOCK_OFFSET + FINAL_BLOCK_SIZE
    return bytes(plaintext)


def driver_plaintext(fields: list[str] = DRIVER_FIELDS, nibbles: list[int] | None = None) -> bytes:
    section1 = encode_fields(fields)
    section2 = pack_nibbles(driver_nibbles() if nibbles is None else nibbles)
    header = bytearray(MARKER + bytes(10))
    header[7] = len(section2)
    header[10] = len(section1)
    return pad_payload(bytes(header) + section1 + section2)


# ================================================================================
#       Fixtures
# ================================================================================
@pytest.fixture(scope="session")
def key_set() -> KeySet:
    return KeySet()


@pytest.fixture(scope="session")
def key_ring(key_set) -> KeyRing:
    return key_set.ring()


@pytest.fixture(scope="session")
def driver_barcode(key_set) -> bytes:
    """A scanned version 1 licence: junk prefix, 6-byte header, ciphertext."""
    ciphertext = key_set.encrypt_payload(driver_plaintext(), version=1)
    return b"\x07\x00\x10" + SIGNATURE_V1 + b"\x00\x00" + ciphertext
