"""Correlation ID middleware.

Every request gets a correlation id, taken from the ``X-Request-ID`` header
when the caller sent a usable one and generated otherwise. The id is:

1. Stored in ``request.state.correlation_id``
2. Added to the logging context for the duration of the request
3. Echoed in the response headers

Pure ASGI so it wraps streaming responses without buffering.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import TYPE_CHECKING

from starlette.datastructures import MutableHeaders

from marketplace_bff.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

# Upstream ids end up in log lines; accept only short token-like values
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def generate_uuid() -> str:
    return str(uuid.uuid4())


class CorrelationIDMiddleware:
    """Propagate a correlation id through logs and response headers.

    Usage:
        app = FastAPI()
        app.add_middleware(CorrelationIDMiddleware, header_name="X-Request-ID")

        @app.get("/")
        async def root(request: Request):
            return {"correlation_id": request.state.correlation_id}
    """

    state_key = "correlation_id"
    log_context_key = "correlation_id"

    def __init__(self, app: ASGIApp, header_name: str = "x-request-id") -> None:
        self.app = app
        self.header_name = header_name.lower()

    def _extract_or_generate(self, scope: Scope) -> tuple[str, bool]:
        """Return the correlation id and whether it was generated here."""
        for name, raw in scope.get("headers", []):
            if name.decode("latin-1").lower() == self.header_name:
                value = raw.decode("latin-1")
                if _VALID_ID.match(value):
                    return value, False
                logger.debug("Ignoring malformed correlation id header")
                break
        return generate_uuid(), True

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        value, was_generated = self._extract_or_generate(scope)
        scope.setdefault("state", {})[self.state_key] = value
        set_log_context(**{self.log_context_key: value})
        if not was_generated:
            logger.debug("Correlation ID received from upstream", extra={"correlation_id": value})

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append(self.header_name, value)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            # Prevent context leakage between requests on the same task
            clear_log_context()


__all__ = ["CorrelationIDMiddleware", "generate_uuid"]
