from collections import deque
from time import monotonic

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from sa_barcode.shared import Config, Logger, load_config

logger = Logger(__name__).get_logger()
config: Config = load_config()
config_rate_limit = config.network.rate_limit

WINDOW_S = 1
SWEEP_INTERVAL_S = 1


class RateLimit(BaseHTTPMiddleware):
    """Rate Limit middleware for FastApi endpoints
    Based loosely on sliding window rate limiting.
    Compares against client IP.
    """

    def __init__(
        self,
        app,
        dispatch=None,
        timeout_period_s=config_rate_limit.timeout_period,
        max_per_second=config_rate_limit.requests_per_second,
    ):
        super().__init__(app, dispatch)

        # Params
        self.__max_per_second = max_per_second
        self.__timeout_period_s = timeout_period_s

        # Checks
        self.__bucket: dict[str, deque[float]] = {}
        self.__timeout_club: dict[str, float] = {}

        # Time
        self.__now = monotonic()
        self.__last_sweep = self.__now

    @property
    def tracked_clients(self) -> int:
        """Number of client addresses currently held in memory."""
        return len(self.__bucket.keys() | self.__timeout_club.keys())

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        # Skip rate limiting for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS" or request.client is None:
            return await call_next(request)

        try:
            self.__now = monotonic()
            self.__sweep()
            self.__check(request.client.host)
        except HTTPException as e:
            logger.warning("Rate limited %s", request.client.host)
            return JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        return await call_next(request)

    def __sweep(self):
        # drop clients with no request inside the window and expired timeouts
        if self.__now - self.__last_sweep < SWEEP_INTERVAL_S:
            return
        self.__last_sweep = self.__now

        idle = [k for k, q in self.__bucket.items() if not q or self.__now - q[-1] > WINDOW_S]
        for key in idle:
            del self.__bucket[key]

        expired = [
            k
            for k, started in self.__timeout_club.items()
            if self.__now - started > self.__timeout_period_s
        ]
        for key in expired:
            del self.__timeout_club[key]

        if idle or expired:
            logger.debug("Pruned %d idle and %d expired clients", len(idle), len(expired))

    def __check(self, key: str):
        # if key is in timeout; then reject
        # record the request timestamp
        # lazily prune records older than one second
        # if records exceed `max_per_second` then time out and reject

        self.__timeout_check(key)
        self.__create_deque(key)

        queue = self.__bucket[key]
        queue.append(self.__now)

        while self.__now - queue[0] > WINDOW_S:
            queue.popleft()

        if len(queue) > self.__max_per_second:
            self.__timeout(key)
            raise HTTPException(status_code=429, detail="Too many requests.")

    def __create_deque(self, key: str):
        if key not in self.__bucket:
            self.__bucket[key] = deque()

    def __timeout_check(self, key: str):
        if key not in self.__timeout_club:
            return

        timeout_timestamp = self.__timeout_club[key]

        if self.__now - timeout_timestamp > self.__timeout_period_s:
            del self.__timeout_club[key]
        else:
            raise HTTPException(status_code=429, detail="Too many requests.")

    def __timeout(self, key: str):
        self.__timeout_club[key] = self.__now
