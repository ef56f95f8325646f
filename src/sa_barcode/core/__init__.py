# Barcode core: key material, the block transform and the licence parsers.
# Nothing here touches the network or disk apart from reading key files.
from .decode import DocumentType, decode_barcode
from .errors import BarcodeError, DecryptionError, KeyMaterialParseError
from .keys import KeyRing, load_key_ring
from .pem import KeyMaterial, parse_pkcs1_pem

__all__ = [
    "BarcodeError",
    "DecryptionError",
    "DocumentType",
    "KeyMaterial",
    "KeyMaterialParseError",
    "KeyRing",
    "decode_barcode",
    "load_key_ring",
    "parse_pkcs1_pem",
]
