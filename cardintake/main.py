import logging
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardintake.api import health_router, intake_router
from cardintake.config import settings
from cardintake.models.failure import ApiResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardintake"),
    debug=settings.debug,
)

app.include_router(health_router)
app.include_router(intake_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Report errors no route classified as an unknown failure."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ApiResponse.unknown_failure().model_dump(mode="json"),
    )
