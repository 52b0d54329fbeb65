from core.observability import configure_observability


# Must run before FastAPI is imported so instrumentation can hook in.
configure_observability()

from collections.abc import AsyncIterator  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402

from fastapi import FastAPI  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402

from api.v1.api import api_router  # noqa: E402
from core.config import get_settings  # noqa: E402
from core.error_handler import (  # noqa: E402
    ExceptionNormalizationMiddleware,
    global_exception_handler,
    setup_logging,
)
from core.middleware import CorrelationIdMiddleware  # noqa: E402
from dependencies.db import init_db  # noqa: E402
from services.ai.exceptions import SummaryServiceError  # noqa: E402


setup_logging()
settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # Tests create their own schema on a private engine
    if settings.ENVIRONMENT != "test":
        await init_db()
    yield


app = FastAPI(
    title="JobFinder API",
    description="Job description summaries and comparisons for job seekers",
    version="0.1.0",
    docs_url=None,  # docs are mounted under /api/v1/docs
    redoc_url=None,
    lifespan=lifespan,
)

# Last added runs first: CORS, then correlation ids, then error normalization
app.add_middleware(ExceptionNormalizationMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

app.add_exception_handler(SummaryServiceError, global_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, global_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, global_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(api_router, prefix="/api/v1")


@app.get("/api/v1/docs", include_in_schema=False)
def custom_swagger_ui_html():
    return get_swagger_ui_html(openapi_url="/openapi.json", title="JobFinder API Docs")


@app.get("/api/v1/redoc", include_in_schema=False)
def redoc_html():
    return get_redoc_html(openapi_url="/openapi.json", title="JobFinder API Redoc")


@app.get("/")
def read_root() -> dict[str, str]:
    return {"message": "JobFinder summary service"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
