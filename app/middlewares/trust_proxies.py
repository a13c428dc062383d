from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send


def client_from_forwarded_for(value: str, proxies_count: int) -> str | None:
    """Pick the submitter address out of ``X-Forwarded-For`` given N trusted hops."""
    hops = [hop.strip() for hop in value.split(",") if hop.strip()]
    if proxies_count <= 0 or len(hops) <= proxies_count:
        return None
    return hops[-(proxies_count + 1)]


class TrustedProxiesMiddleware:
    """
    Rewrite the ASGI client address from ``X-Forwarded-For``.

    Only the last ``proxies_count`` hops are trusted. The rewritten address is what
    the rate limiter keys on and what a public submission records as its origin.
    """

    def __init__(self, app: ASGIApp, proxies_count: int = 1) -> None:
        self.app = app
        self.proxies_count = proxies_count

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.proxies_count > 0:
            forwarded = Headers(scope=scope).get("x-forwarded-for")
            if forwarded:
                real_ip = client_from_forwarded_for(forwarded, self.proxies_count)
                if real_ip:
                    port = scope["client"][1] if scope.get("client") else 0
                    scope["client"] = (real_ip, port)

        await self.app(scope, receive, send)
