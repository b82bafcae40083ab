"""FastAPI application entrypoint."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shadow_render.api import router as api_router
from shadow_render.core.config import settings
from shadow_render.core.errors import UnauthorizedError
from shadow_render.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than the configured limit with 413.

    A declared ``Content-Length`` is checked up front. Bodies without one
    (chunked uploads) are read and measured before the route sees them; the
    cached body is replayed downstream.
    """

    def __init__(self, app, max_bytes: int) -> None:
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
        elif request.method in {"POST", "PUT", "PATCH"}:
            size = len(await request.body())
        else:
            size = 0

        if size > self.max_bytes:
            logger.warning(
                "request_body_too_large",
                path=request.url.path,
                size=size,
                declared=content_length is not None,
            )
            return JSONResponse(status_code=413, content={"error": "payload_too_large"})
        return await call_next(request)


app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    """Answer 401 in the format the route promises."""

    logger.info("request_unauthorized", path=request.url.path)
    if exc.plain_text:
        return PlainTextResponse("unauthorized", status_code=401)
    return JSONResponse(status_code=401, content={"error": "unauthorized"})


app.include_router(api_router.api_router)
