"""
Request timing and SQL statement counting.

``install_query_counter`` hooks an engine so every statement it sends bumps
a per-request ``ContextVar``; ``TimingMiddleware`` resets that counter when
a request starts and reports it, together with the elapsed time, in two
response headers and one access log line.
"""
import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

RESPONSE_TIME_HEADER = b"x-response-time-ms"
QUERY_COUNT_HEADER = b"x-query-count"

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)


def install_query_counter(engine) -> None:
    """
    Count every statement *engine* executes, including the COUNT and
    GROUP BY statements of listing search and statistics.  Call once per
    engine: the application engine in ``app.database`` and the test
    engine in ``conftest.py``.
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)


class TimingMiddleware:
    """
    Pure ASGI middleware (no child task, so the counter set by the
    engine hook is visible here).  Adds ``X-Response-Time-Ms`` and
    ``X-Query-Count`` to every HTTP response and logs one line per
    request: DEBUG normally, WARNING once ``slow_request_ms`` is exceeded.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 1000.0) -> None:
        self.app = app
        self.slow_request_ms = slow_request_ms

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_count_var.set(0)
        start = time.perf_counter()
        status_code = 500

        async def send_with_timing(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                message["headers"] = [
                    *message.get("headers", []),
                    (RESPONSE_TIME_HEADER, f"{_elapsed_ms(start):.2f}".encode()),
                    (QUERY_COUNT_HEADER, str(query_count_var.get()).encode()),
                ]
            await send(message)

        try:
            await self.app(scope, receive, send_with_timing)
        finally:
            self._log_request(scope, status_code, _elapsed_ms(start))

    def _log_request(self, scope: Scope, status_code: int, elapsed_ms: float) -> None:
        level = logging.WARNING if elapsed_ms >= self.slow_request_ms else logging.DEBUG
        logger.log(
            level,
            "%s %s -> %s (%.2f ms, %d queries)",
            scope.get("method"),
            scope.get("path"),
            status_code,
            elapsed_ms,
            query_count_var.get(),
        )


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000
