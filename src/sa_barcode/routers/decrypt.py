from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from sa_barcode.core import DocumentType, KeyRing, decode_barcode
from sa_barcode.models.requests import DecryptRequest, DecryptResponse
from sa_barcode.shared import Logger
from sa_barcode.shared.http import decryption_error_handler, server_error_handler

from .dependencies import get_key_ring

logger = Logger(__name__).get_logger()

router = APIRouter()


@router.post("/decrypt/{document_type}", response_model=DecryptResponse)
def decrypt(
    document_type: DocumentType,
    data: DecryptRequest,
    keys: Annotated[KeyRing, Depends(get_key_ring)],
):
    """
    Decrypt a scanned licence barcode.

    `document_type` is `drivers` or `vehicle`; the body carries the raw
    PDF417 bytes as base64. Undecodable payloads return 422.
    """
    # Plain def: the transform runs on the threadpool
    try:
        raw = data.raw_bytes()
    except ValueError as e:
        logger.warning("Rejected barcode payload: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.debug("Decoding %d byte %s barcode", len(raw), document_type)

    with server_error_handler(), decryption_error_handler():
        record = decode_barcode(raw, document_type, keys)

    logger.info("Decoded %s barcode (version %d)", document_type, record.version)
    return DecryptResponse(data=record)
