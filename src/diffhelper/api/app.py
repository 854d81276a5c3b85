"""FastAPI application for decoding and translating raw change lines."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import DiffHelperError
from ..logging_utils import configure_logging
from . import __version__
from .routes import router as api_router
from .service import error_envelope

configure_logging()

app = FastAPI(
    title="diffhelper API",
    description="Raw change line decoding and diff rendering",
    version=__version__,
)
app.include_router(api_router)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    """Wrap unexpected failures in the standard error envelope."""
    return JSONResponse(
        status_code=500,
        content=error_envelope(
            DiffHelperError(
                "INTERNAL_ERROR",
                f"Internal server error: {exc}",
                {"exception_type": type(exc).__name__, "path": request.url.path},
            )
        ),
    )
