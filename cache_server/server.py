from __future__ import annotations

from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from common.logging_setup import get_logger, setup_logging
from common.types import RequestDescriptor, ResponseDescriptor
from cache_server.config import ServerConfig, load_config
from cache_server.counter import RequestCounter
from cache_server.dispatch import ENDPOINTS, Dispatcher
from cache_server.generator import ImageGenerator


log = get_logger("cache_server.server")

_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def to_descriptor(request: Request) -> RequestDescriptor:
    return RequestDescriptor(
        method=request.method,
        path=request.url.path,
        params=dict(request.query_params),
    )


def to_response(rsp: ResponseDescriptor) -> Response:
    return Response(content=rsp.body, status_code=rsp.status, headers=rsp.headers, media_type=rsp.media_type)


def create_app(config: Optional[ServerConfig] = None, counter: Optional[RequestCounter] = None) -> FastAPI:
    """
    Build the FastAPI app around a single Dispatcher.

    All paths go through one catch-all route so routing, validation and
    404/405 handling live in the dispatcher.
    """
    config = config or load_config()
    setup_logging(config.log_level)

    counter = counter or RequestCounter()
    generator = ImageGenerator(config.image)
    dispatcher = Dispatcher(generator, counter, default_max_age=config.default_max_age)

    app = FastAPI(title="Cache Test Server", version="1.0.0")
    app.state.config = config
    app.state.counter = counter
    app.state.dispatcher = dispatcher

    # Test pages on other origins load the images directly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Cache-Control", "ETag", "Last-Modified", "Pragma", "Expires"],
    )

    # Sync handler: FastAPI runs it in its threadpool, so slow generations
    # do not block the event loop.
    @app.api_route("/{path:path}", methods=_METHODS, include_in_schema=False)
    def handle(request: Request) -> Response:
        return to_response(dispatcher.dispatch(to_descriptor(request)))

    return app


app = create_app()


def main() -> None:
    config = load_config()
    setup_logging(config.log_level)
    w, h = config.image.width, config.image.height
    log.info(
        "Cache test server starting",
        extra={
            "extra": {
                "url": f"http://localhost:{config.port}",
                "image": f"{w}x{h}",
                "endpoints": list(ENDPOINTS),
                "examples": ["/cache-test?maxAge=86400", "/cache-test/max-age/3600"],
            }
        },
    )
    uvicorn.run(create_app(config), host=config.host, port=config.port)


# -------- local dev entrypoint --------
if __name__ == "__main__":
    main()
