import time
from typing import Iterable

from fastapi import HTTPException, Request
from starlette import status

from src.config import config_instance
from src.utils.my_logger import init_logger

ratelimit_logger = init_logger("contact_throttle")


class RateLimitExceeded(HTTPException):
    def __init__(self, rate_limit: dict[str, str | int], detail: str, status_code: int = status.HTTP_429_TOO_MANY_REQUESTS):
        super().__init__(detail=detail, status_code=status_code)
        self.rate_limit = rate_limit


class RateLimit:
    """
    **RateLimit**
         Sliding window limiter, keeps the timestamps of the requests seen
         during the last `duration` seconds and refuses more than `max_requests`
         of them.
    """
    def __init__(self, max_requests: int = 5, duration: int = 60):
        self.max_requests = max_requests
        self.duration_seconds = duration
        self.requests: list[float] = []

    def is_limit_exceeded(self) -> bool:
        now = time.monotonic()
        # remove old requests from the list
        self.requests = [r for r in self.requests if r > now - self.duration_seconds]
        # check if limit is exceeded
        if len(self.requests) >= self.max_requests:
            return True
        self.requests.append(now)
        return False

    def is_idle(self) -> bool:
        """true once every recorded request has left the window"""
        now = time.monotonic()
        self.requests = [r for r in self.requests if r > now - self.duration_seconds]
        return not self.requests

    def retry_after(self) -> int:
        """seconds until the oldest request in the window expires"""
        if not self.requests:
            return 0
        return max(0, int(self.requests[0] + self.duration_seconds - time.monotonic()) + 1)

    def to_dict(self) -> dict[str, int]:
        return {
            'limit': self.max_requests,
            'duration': self.duration_seconds,
            'retry_after': self.retry_after()}


ip_rate_limits: dict[str, RateLimit] = {}


def get_client_ip(request: Request, trusted_proxies: Iterable[str] | None = None) -> str:
    """
        will return the actual client ip address of the client making the request,
        cf-connecting-ip and x-forwarded-for are only believed when the peer is a trusted proxy
    :param request:
    :param trusted_proxies: defaults to RATE_LIMIT_SETTINGS.TRUSTED_PROXIES
    :return:
    """
    if trusted_proxies is None:
        trusted_proxies = config_instance().RATE_LIMIT_SETTINGS.TRUSTED_PROXIES
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer

    ip = request.headers.get('cf-connecting-ip') or request.headers.get('x-forwarded-for')
    if ip:
        return ip.split(',')[0].strip()
    return peer


def evict_idle_clients(max_clients: int) -> int:
    """
        **evict_idle_clients**
            drops clients whose window is empty, then the oldest entries
            until the registry is below max_clients
    :param max_clients:
    :return: number of evicted clients
    """
    idle = [client_ip for client_ip, rate_limit in ip_rate_limits.items() if rate_limit.is_idle()]
    for client_ip in idle:
        del ip_rate_limits[client_ip]

    evicted = len(idle)
    while ip_rate_limits and len(ip_rate_limits) >= max_clients:
        del ip_rate_limits[next(iter(ip_rate_limits))]
        evicted += 1
    return evicted


async def rate_limit_by_ip(request: Request) -> None:
    """
        **rate_limit_by_ip**
            route dependency, raises RateLimitExceeded once a client ip
            goes over the configured number of submissions per window
    :param request:
    :return:
    """
    settings = config_instance().RATE_LIMIT_SETTINGS
    if not settings.RATE_LIMIT_ENABLED:
        return

    client_ip = get_client_ip(request, trusted_proxies=settings.TRUSTED_PROXIES)
    if client_ip not in ip_rate_limits:
        if len(ip_rate_limits) >= settings.RATE_LIMIT_MAX_CLIENTS:
            evicted = evict_idle_clients(max_clients=settings.RATE_LIMIT_MAX_CLIENTS)
            ratelimit_logger.info(f"Evicted {evicted} clients from the rate limit registry")
        ip_rate_limits[client_ip] = RateLimit(max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
                                              duration=settings.RATE_LIMIT_DURATION)

    rate_limit = ip_rate_limits[client_ip]
    if rate_limit.is_limit_exceeded():
        ratelimit_logger.warning(f"""
            Throttling Requests
                request from = {client_ip}
                resource_path = {request.url.path}
        """)
        raise RateLimitExceeded(rate_limit=rate_limit.to_dict(), detail='Rate limit exceeded')
