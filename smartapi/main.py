import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import drives, health
from .config import get_settings

logger = logging.getLogger(__name__)

app = FastAPI(title="SMART Drive API")

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(drives.router, prefix="/drives", tags=["drives"])


@app.exception_handler(StarletteHTTPException)
async def plain_text_http_error(request: Request, exc: StarletteHTTPException):
    """HTTP errors carry their message as plain text, not as a JSON document."""
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


def run() -> None:
    """Serve the API on the configured host and port."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("SMART API server listening on %s:%d", settings.host, settings.port)

    # uvicorn logs bind failures and exits the process with status 1
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
