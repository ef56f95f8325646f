from .decrypt import DecryptRequest, DecryptResponse
from ..serde_base import SerdeBase

__all__ = [
    "DecryptRequest",
    "DecryptResponse",
    "SerdeBase",
]
