from contextlib import contextmanager

from fastapi import HTTPException

from sa_barcode.core.errors import DecryptionError
from sa_barcode.shared import Logger

__all__ = ["decryption_error_handler", "server_error_handler"]

logger = Logger(__name__).get_logger()


@contextmanager
def server_error_handler(stacklevel=1):
    # Go 3 levels up to escape @contextmanager methods and current function
    stack_level = 2 + stacklevel
    kw = {"stacklevel": stack_level}
    try:
        yield

    except HTTPException:
        raise

    except Exception as e:
        logger.error("Failed to process request: %s", e, **kw)
        raise HTTPException(status_code=500, detail=str(e)) from e


@contextmanager
def decryption_error_handler(stacklevel=1):
    """Map a DecryptionError to 422; anything else propagates unchanged."""
    stack_level = 2 + stacklevel
    kw = {"stacklevel": stack_level}
    try:
        yield

    except DecryptionError as e:
        logger.warning("Barcode could not be decoded: %s", e, **kw)
        raise HTTPException(status_code=422, detail=str(e)) from e
