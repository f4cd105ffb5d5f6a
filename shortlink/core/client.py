"""
Client Identification

One canonical answer to "who is the client", shared by the rate limiter,
the CAPTCHA relay and request logging:

1. CF-Connecting-IP (set by Cloudflare in front of the service)
2. First entry of X-Forwarded-For (proxy/load balancer)
3. The connection peer address
"""

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Args:
        request: Incoming Starlette/FastAPI request

    Returns:
        IP address as string, or "unknown" when nothing identifies the client
    """
    connecting_ip = request.headers.get("CF-Connecting-IP")
    if connecting_ip and connecting_ip.strip():
        return connecting_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    return request.client.host if request.client else UNKNOWN_CLIENT
