"""
Fixed-block modular exponentiation used by licence barcodes.

The barcode payload is five 128-byte blocks followed by one 74-byte block.
Each block is transformed independently as ``block ** e mod n`` with the
public key for its width. There is no padding and no chaining, so this is
not RSA decryption in the library sense and is deliberately not built on
an RSA API.
"""

from .errors import DecryptionError
from .pem import KeyMaterial

__all__ = [
    "BLOCK_SIZE",
    "FINAL_BLOCK_SIZE",
    "PAYLOAD_SIZE",
    "bytes_to_int",
    "bytes_to_nibbles",
    "decrypt_block",
    "decrypt_six_block_payload",
    "int_to_bytes",
    "mod_pow",
]

BLOCK_SIZE = 128
BLOCK_COUNT = 5
FINAL_BLOCK_SIZE = 74
FINAL_BLOCK_OFFSET = BLOCK_SIZE * BLOCK_COUNT
PAYLOAD_SIZE = FINAL_BLOCK_OFFSET + FINAL_BLOCK_SIZE  # 714


def bytes_to_int(data: bytes) -> int:
    return int.from_bytes(data, "big")


def int_to_bytes(value: int, length: int) -> bytes:
    return value.to_bytes(length, "big")


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """Right-to-left square-and-multiply."""
    result = 1 % modulus
    base %= modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % modulus
        exponent >>= 1
        base = (base * base) % modulus
    return result


def decrypt_block(block: bytes, key: KeyMaterial, output_size: int) -> bytes:
    value = mod_pow(bytes_to_int(block), key.exponent, key.modulus)
    return int_to_bytes(value, output_size)


def decrypt_six_block_payload(
    ciphertext: bytes, key128: KeyMaterial, key74: KeyMaterial
) -> bytes:
    """Transform the first 714 bytes of ``ciphertext`` into plaintext."""
    if len(ciphertext) < PAYLOAD_SIZE:
        raise DecryptionError("Encrypted payload too short")

    blocks = [
        decrypt_block(ciphertext[offset : offset + BLOCK_SIZE], key128, BLOCK_SIZE)
        for offset in range(0, FINAL_BLOCK_OFFSET, BLOCK_SIZE)
    ]
    blocks.append(
        decrypt_block(
            ciphertext[FINAL_BLOCK_OFFSET:PAYLOAD_SIZE], key74, FINAL_BLOCK_SIZE
        )
    )
    return b"".join(blocks)


def bytes_to_nibbles(data: bytes) -> list[int]:
    nibbles = []
    for byte in data:
        nibbles.append(byte >> 4)
        nibbles.append(byte & 0x0F)
    return nibbles
