"""
Request pipeline.

An ordered list of interceptors runs in front of the API router. Each interceptor
gets the request and a continuation to the rest of the chain; it can attach state
to ``request.state`` and continue, or answer itself and stop the chain there.
"""
import json
import logging
from functools import partial
from typing import Awaitable, Callable, Iterable, Mapping, Optional

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from scroll.api.errors import (
    BODY_TOO_LARGE, INVALID_JSON, METHOD_NOT_ALLOWED, MISSING_SECRET, TOKEN_INVALID,
    error_response,
)
from scroll.api.security import AuthenticationError, InvalidToken, TokenCodec, parse_token_cookie
from scroll.api.static import StaticRoute

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


# PUBLIC_INTERFACE
class Interceptor:
    """One stage of the pipeline. The default implementation just continues."""

    async def handle(self, request: Request, call_next: Handler) -> Response:
        return await call_next(request)


# PUBLIC_INTERFACE
class Pipeline:
    """Drives a request through the interceptors in order, ending at the endpoint."""

    def __init__(self, interceptors: Iterable[Interceptor]):
        self.interceptors = tuple(interceptors)

    async def run(self, request: Request, endpoint: Handler) -> Response:
        return await self._step(0, endpoint, request)

    async def _step(self, index: int, endpoint: Handler, request: Request) -> Response:
        if index == len(self.interceptors):
            return await endpoint(request)
        call_next = partial(self._step, index + 1, endpoint)
        return await self.interceptors[index].handle(request, call_next)


# PUBLIC_INTERFACE
class PipelineMiddleware(BaseHTTPMiddleware):
    """Mounts a Pipeline on the app with the router as its endpoint."""

    def __init__(self, app, pipeline: Pipeline):
        super().__init__(app)
        self.pipeline = pipeline

    async def dispatch(self, request: Request, call_next) -> Response:
        return await self.pipeline.run(request, call_next)


# ==== Interceptors ====

# PUBLIC_INTERFACE
class RequestLogger(Interceptor):
    """Logs method, URL and final status of every request. Never answers itself."""

    async def handle(self, request: Request, call_next: Handler) -> Response:
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        try:
            response = await call_next(request)
        except Exception:
            logger.info("%s %s %s", request.method, url, 500)
            raise
        logger.info("%s %s %s", request.method, url, response.status_code)
        return response


def is_json(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


# PUBLIC_INTERFACE
class BodyParser(Interceptor):
    """
    Parses JSON bodies of POST requests into request.state.body.
    Every other request passes through with request.state.body set to None.
    """

    def __init__(self, max_body_bytes: int):
        self.max_body_bytes = max_body_bytes

    async def handle(self, request: Request, call_next: Handler) -> Response:
        request.state.body = None
        if request.method != "POST" or not is_json(request.headers.get("content-type")):
            return await call_next(request)

        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                declared_length = int(declared)
            except ValueError:
                return error_response(400, "Invalid Content-Length header.")
            if declared_length > self.max_body_bytes:
                return error_response(413, BODY_TOO_LARGE)

        chunks = []
        received = 0
        async for chunk in request.stream():
            received += len(chunk)
            if received > self.max_body_bytes:
                return error_response(413, BODY_TOO_LARGE)
            chunks.append(chunk)
        raw = b"".join(chunks)
        if not raw.strip():
            return await call_next(request)

        try:
            request.state.body = json.loads(raw)
        except ValueError:
            return error_response(400, INVALID_JSON)
        return await call_next(request)


# PUBLIC_INTERFACE
class AuthGate(Interceptor):
    """
    Requires a valid session cookie on protected routes and stores the user id in request.state.user_id.
    protected_routes maps a path to the methods that need a session; other methods fall through to the router.
    codec_factory returns None when no signing secret is configured.
    """

    def __init__(self, protected_routes: Mapping[str, Iterable[str]], codec_factory: Callable[[], Optional[TokenCodec]]):
        self.protected_routes = {path: frozenset(methods) for path, methods in protected_routes.items()}
        self.codec_factory = codec_factory

    async def handle(self, request: Request, call_next: Handler) -> Response:
        methods = self.protected_routes.get(request.url.path)
        if methods is None or request.method not in methods:
            return await call_next(request)

        try:
            token = parse_token_cookie(request.headers.get("cookie"))
        except AuthenticationError as e:
            return error_response(401, str(e))

        codec = self.codec_factory()
        if codec is None:
            logger.error("JWT_SECRET is not configured, refusing %s %s", request.method, request.url.path)
            return error_response(500, MISSING_SECRET)

        try:
            request.state.user_id = codec.verify(token)
        except InvalidToken as e:
            logger.debug("Token rejected: %s", e)
            return error_response(401, TOKEN_INVALID)
        return await call_next(request)


# PUBLIC_INTERFACE
class StaticAssets(Interceptor):
    """Answers requests whose path is in the static route table; anything else continues."""

    def __init__(self, routes: Mapping[str, StaticRoute]):
        self.routes = routes

    async def handle(self, request: Request, call_next: Handler) -> Response:
        route = self.routes.get(request.url.path)
        if route is None:
            return await call_next(request)

        if request.method != "GET":
            return error_response(405, METHOD_NOT_ALLOWED, headers={"Allow": "GET"})

        try:
            content = await run_in_threadpool(route.file_path.read_bytes)
        except OSError as e:
            logger.error("Error serving static file %s: %s", route.file_path, e)
            return error_response(500, "Failed to serve static files.")
        return Response(content=content, media_type=route.content_type)
