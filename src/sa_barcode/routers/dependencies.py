from fastapi import HTTPException, Request

from sa_barcode.core import KeyRing


def get_key_ring(request: Request) -> KeyRing:
    """Key material built during application startup."""
    key_ring = getattr(request.app.state, "key_ring", None)
    if key_ring is None:
        raise HTTPException(status_code=503, detail="Key material not loaded")
    return key_ring
