from .decrypt import router as decrypt_router
from .health import router as health_router

_routers = [decrypt_router, health_router]

__all__ = ["get_routers"]


def get_routers():
    return _routers
