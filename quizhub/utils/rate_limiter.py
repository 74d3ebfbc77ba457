"""
Rate limiting for API requests
"""
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional
import logging

from fastapi import Request

from quizhub.config import settings
from quizhub.exceptions import QuizHubError, RateLimitExceededError
from quizhub.utils.security import decode_access_token

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


class RateLimiter:
    """
    In-memory sliding-window rate limiter
    Production: Use Redis for distributed rate limiting
    """

    MINUTE = 60
    HOUR = 3600

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour

        # {client_id: timestamps of requests within the last hour}
        self.history: Dict[str, Deque[float]] = defaultdict(deque)

    def client_id(self, request: Request) -> str:
        """Authenticated user id when the request carries a valid token, else IP"""
        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() == "bearer" and token:
            try:
                return f"user:{decode_access_token(token).user_id}"
            except QuizHubError:
                pass

        return f"ip:{request.client.host if request.client else 'unknown'}"

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop timestamps older than an hour, and clients left with none"""
        cutoff = now - self.HOUR
        for client_id in list(self.history):
            timestamps = self.history[client_id]
            while timestamps and timestamps[0] <= cutoff:
                timestamps.popleft()
            if not timestamps:
                del self.history[client_id]

    def hit(self, client_id: str, now: Optional[float] = None) -> None:
        """
        Record one request for a client

        Raises:
            RateLimitExceededError: a window is already full
        """
        now = time.time() if now is None else now
        self._cleanup_old_entries(now)
        timestamps = self.history[client_id]

        last_minute = sum(1 for ts in timestamps if ts > now - self.MINUTE)
        if last_minute >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded (minute): {client_id}")
            raise RateLimitExceededError(
                f"Too many requests. Limit: {self.requests_per_minute} requests per minute",
                retry_after=self.MINUTE,
            )

        if len(timestamps) >= self.requests_per_hour:
            logger.warning(f"Rate limit exceeded (hour): {client_id}")
            raise RateLimitExceededError(
                f"Too many requests. Limit: {self.requests_per_hour} requests per hour",
                retry_after=self.HOUR,
            )

        timestamps.append(now)

    async def check_rate_limit(self, request: Request) -> None:
        if request.url.path in EXEMPT_PATHS:
            return
        self.hit(self.client_id(request))

    def reset(self) -> None:
        self.history.clear()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
