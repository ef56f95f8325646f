__all__ = ["BarcodeError", "DecryptionError", "KeyMaterialParseError"]


class BarcodeError(Exception):
    """Base class for failures raised by the barcode core."""


class KeyMaterialParseError(BarcodeError):
    """A configured public key could not be parsed.

    Raised at startup only. The service must not serve requests without
    valid key material, so this is never caught by the request layer.
    """


class DecryptionError(BarcodeError):
    """A scanned payload is malformed, truncated or otherwise undecodable."""
