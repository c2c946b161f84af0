"""
ASGI middleware logging relay API requests and responses.

Pure ASGI (not BaseHTTPMiddleware) so request bodies can be observed while
they pass through to the route. Upload payloads are summarized, never
written to the log.
"""

import json
import logging
import time
from typing import Optional, Sequence
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)


def _summarize_body(body: bytes, content_type: str) -> Optional[str]:
    """Render a request/response body for the log."""
    if not body:
        return None
    if not content_type.startswith("application/json"):
        return f"<{len(body)} bytes {content_type or 'unknown'}>"
    text = body.decode("utf-8", errors="ignore")
    try:
        payload = filter_sensitive_data(json.loads(text))
    except json.JSONDecodeError:
        return truncate_large_data(text, max_length=2000)
    return truncate_large_data(json.dumps(payload, ensure_ascii=False), max_length=2000)


def _error_reason(body_text: Optional[str]) -> Optional[str]:
    """Pull the `error` (or FastAPI `detail`) field out of a JSON body."""
    if not body_text:
        return None
    try:
        payload = json.loads(body_text)
    except json.JSONDecodeError:
        return truncate_large_data(body_text, max_length=500)
    if isinstance(payload, dict):
        for key in ("error", "detail", "message"):
            if payload.get(key):
                return str(payload[key])
    return None


class RequestLoggingMiddleware:
    """Logs method, path, status, duration and summarized bodies."""

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Optional[Sequence[str]] = None,
        exclude_prefixes: Optional[Sequence[str]] = None,
    ):
        self.app = app
        self.exclude_paths = set(exclude_paths or ["/", "/health", "/favicon.ico"])
        self.exclude_prefixes = tuple(exclude_prefixes or ["/static"])

    def _excluded(self, path: str) -> bool:
        return path in self.exclude_paths or path.startswith(self.exclude_prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self._excluded(scope.get("path", "")):
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = id(scope)
        method = scope.get("method", "UNKNOWN")
        path = scope.get("path", "")
        headers = {
            k.decode("latin-1").lower(): v.decode("latin-1")
            for k, v in scope.get("headers", [])
        }
        client = scope.get("client")

        request_chunks = []
        response_chunks = []
        response_state = {"status": 0, "content_type": ""}

        async def logging_receive() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_chunks.append(message.get("body", b""))
            return message

        async def logging_send(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_state["status"] = message.get("status", 0)
                for key, value in message.get("headers", []):
                    if key.lower() == b"content-type":
                        response_state["content_type"] = value.decode("latin-1")
            elif message["type"] == "http.response.body":
                response_chunks.append(message.get("body", b""))
            await send(message)

        logger.info(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "client": client[0] if client else None,
                "session_header": headers.get("x-session-id"),
            }}
        )

        try:
            await self.app(scope, logging_receive, logging_send)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        status_code = response_state["status"]
        request_body = _summarize_body(b"".join(request_chunks), headers.get("content-type", ""))
        response_body = _summarize_body(b"".join(response_chunks), response_state["content_type"])
        error_reason = _error_reason(response_body) if status_code >= 400 else None

        if status_code < 400:
            log_level = logging.INFO
        elif status_code < 500:
            log_level = logging.WARNING
        else:
            log_level = logging.ERROR

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if error_reason:
            message += f" | error_reason={error_reason}"
        if logger.isEnabledFor(logging.DEBUG):
            message += f" | request_body={request_body or '-'} | response_body={response_body or '-'}"

        logger.log(
            log_level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                "request_body": request_body,
                "response_body": response_body,
                "error_reason": error_reason,
            }}
        )
