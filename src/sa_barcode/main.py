from contextlib import asynccontextmanager

from fastapi import (
    FastAPI,
)
from fastapi.middleware.cors import CORSMiddleware

from sa_barcode.core import load_key_ring
from sa_barcode.middleware import RateLimit
from sa_barcode.routers import get_routers
from sa_barcode.shared import Logger, load_config

logger = Logger(__name__).get_logger()

config = load_config()


# ================================================================================
#       Startup
# ================================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    # KeyMaterialParseError propagates: no keys, no server
    app.state.key_ring = load_key_ring(config.decrypt)
    yield
    app.state.key_ring = None


# ================================================================================
#       FastAPI Setup
# ================================================================================
app = FastAPI(title="SA licence barcode decoder", lifespan=lifespan)

for router in get_routers():
    app.include_router(router)

origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RateLimit)


# ================================================================================
#       Command Line
# ================================================================================
def welcome():
    # Log server banner
    for line in config.general.title.split("\n"):
        logger.info(line)

    logger.info("Starting barcode decryption server")


def main(argv=None):
    welcome()

    import uvicorn

    uvicorn.run(
        "sa_barcode.main:app",
        host=config.network.host,
        port=config.network.port,
        reload=config.network.reload,
    )


if __name__ == "__main__":
    main()
