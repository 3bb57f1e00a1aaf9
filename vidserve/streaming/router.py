"""HTTP surface for streaming indexed files."""

import logging

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from vidserve.errors import NotFoundError, RangeNotSatisfiableError

from .service import StreamService

logger = logging.getLogger(__name__)


def create_stream_router(service: StreamService) -> APIRouter:
    router = APIRouter()

    @router.head("/stream/{file_id}")
    def stream_head(file_id: int) -> Response:
        plan = service.head_metadata(file_id)
        return Response(
            status_code=plan.status_code, headers=plan.headers, media_type=plan.media_type
        )

    @router.get("/stream/{file_id}")
    def stream_get(file_id: int, request: Request) -> Response:
        plan = service.stream_file(file_id, request.headers.get("range"))
        try:
            stream = service.open(plan)
        except FileNotFoundError as e:
            raise NotFoundError(f"File {file_id} not found") from e

        return StreamingResponse(
            stream.chunks(),
            status_code=plan.status_code,
            headers=plan.headers,
            media_type=plan.media_type,
            background=BackgroundTask(stream.release, "close"),
        )

    return router


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError) -> Response:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(RangeNotSatisfiableError)
    async def handle_bad_range(request: Request, exc: RangeNotSatisfiableError) -> Response:
        return Response(status_code=416, headers={"Content-Range": f"bytes */{exc.size}"})

    @app.exception_handler(OSError)
    async def handle_os_error(request: Request, exc: OSError) -> Response:
        logger.error("Error serving %s: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
