"""
Request middleware: request_id injection, timing and the safe 500 fallback.
"""
import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from orderboard.core.logging import (
    api_logger,
    generate_request_id,
    get_request_id,
    request_id_var,
    request_start_var,
)
from orderboard.services.errors import OrderBoardError

QUIET_PATHS = ('/healthz', '/readyz')


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    1. Generates or propagates X-Request-ID
    2. Times the request
    3. Logs a one-line summary per request
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        request_id_var.set(request_id)
        request_start_var.set(time.time())
        request.state.request_id = request_id

        path = request.url.path
        quiet = path.endswith(QUIET_PATHS)

        try:
            response = await call_next(request)
            response.headers['X-Request-ID'] = request_id

            if not quiet:
                duration = round((time.time() - request_start_var.get()) * 1000, 2)
                log = api_logger.info if response.status_code < 400 else api_logger.warning
                log(
                    f"{request.method} {path} -> {response.status_code}",
                    duration_ms=duration,
                )
            return response

        except Exception as e:
            duration = round((time.time() - request_start_var.get()) * 1000, 2)
            api_logger.error(f"{request.method} {path} -> 500 (unhandled)", error=e, duration_ms=duration)
            return JSONResponse(
                status_code=500,
                content={
                    'success': False,
                    'message': 'Internal server error',
                    'request_id': request_id,
                },
                headers={'X-Request-ID': request_id},
            )
        finally:
            request_id_var.set(None)
            request_start_var.set(None)


async def order_board_error_handler(request: Request, exc: OrderBoardError) -> JSONResponse:
    """Render domain errors as {success: false, message, errors?}."""
    content = {'success': False, 'message': exc.message}
    errors = getattr(exc, 'errors', None)
    if errors:
        content['errors'] = errors
    return JSONResponse(status_code=exc.http_code, content=content)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: never leak internals to the client."""
    request_id = getattr(request.state, 'request_id', None) or get_request_id() or 'unknown'

    api_logger.error(
        f"Unhandled exception in {request.method} {request.url.path}",
        error=exc,
    )

    return JSONResponse(
        status_code=500,
        content={
            'success': False,
            'message': 'Internal server error',
            'request_id': request_id,
        },
        headers={'X-Request-ID': request_id},
    )
