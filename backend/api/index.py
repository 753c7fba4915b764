"""Vercel ASGI entrypoint: serves the Rubriq API under an ``/api`` prefix."""
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from rubriq.main import resolve_cors_origins
from rubriq.main import app as inner_app

API_PREFIX = "/api"
PREFLIGHT_METHODS = "GET,POST,DELETE,OPTIONS"


def _strip_prefix(scope: Scope, prefix: str) -> Scope:
    path = scope.get("path", "")
    if not path.startswith(prefix):
        return scope
    stripped = dict(scope)
    stripped["path"] = path[len(prefix):] or "/"
    return stripped


def _preflight_response(scope: Scope) -> Response:
    headers = {k.decode("latin1").lower(): v.decode("latin1") for k, v in scope.get("headers", [])}
    origin = headers.get("origin", "*")
    allowed = resolve_cors_origins()
    if "*" not in allowed and origin not in allowed:
        return Response(status_code=403)
    return Response(
        status_code=204,
        headers={
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": PREFLIGHT_METHODS,
            "Access-Control-Allow-Headers": headers.get("access-control-request-headers", "*"),
        },
    )


class StripPrefix:
    def __init__(self, app: ASGIApp, prefix: str):
        self.app = app
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] in ("http", "websocket"):
            scope = _strip_prefix(scope, self.prefix)

        # Browsers send preflight without credentials, so it never reaches the API-key check.
        if scope["type"] == "http" and scope.get("method") == "OPTIONS":
            await _preflight_response(scope)(scope, receive, send)
            return

        await self.app(scope, receive, send)


app = StripPrefix(inner_app, API_PREFIX)
