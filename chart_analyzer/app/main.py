"""
FastAPI entrypoint with the /analyze routes.

Two entry modes share one pipeline:
- GET  /analyze : analyze the server-local sample chart
- POST /analyze : analyze an uploaded chart (multipart field "image")

Both validate the image, send it to Gemini, and return the raw model text in an
envelope. Parsing into a structured record happens on the client side.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse

from .config import STATIC_DIR, Settings
from .errors import ChartAnalyzerError, ConfigurationError, MissingInputError
from .llm_client import GeminiChartClient
from .payload import build_from_path, build_from_upload
from .schemas import AnalysisResponse, HealthResponse, ImageInfo, ImagePayload
from .utils import utc_timestamp

logger = logging.getLogger(__name__)

INDEX_PATH = os.path.join(STATIC_DIR, "index.html")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # Keep transport chatter out of the request logs
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_analysis_client(request: Request) -> Any:
    client = getattr(request.app.state, "analysis_client", None)
    if client is None:
        raise ConfigurationError("Analysis client is not initialized")
    return client


def _run_analysis(client: Any, payload: ImagePayload, source: str) -> AnalysisResponse:
    analysis = client.analyze(payload)
    return AnalysisResponse(
        success=True,
        analysis=analysis,
        timestamp=utc_timestamp(),
        image_info=ImageInfo(
            source=source,
            filename=payload.filename,
            size=payload.size,
            media_type=payload.media_type,
        ),
    )


async def chart_analyzer_error_handler(request: Request, exc: ChartAnalyzerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.details})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected [{exc.status_code}]: {exc.message}")
    body = AnalysisResponse(success=False, error=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed form fields (e.g. `image` sent as text) are input errors, not 422s."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', '')}")
    details = "; ".join(messages)
    logger.info(f"{request.method} {request.url.path} rejected [400]: {details}")
    body = AnalysisResponse(success=False, error="Invalid request. The image field must be an uploaded file.", details=details or None)
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


def create_app(settings: Optional[Settings] = None, analysis_client: Any = None) -> FastAPI:
    """
    Build the FastAPI app.

    `analysis_client` is anything with `analyze(payload) -> str`; when omitted, a
    GeminiChartClient is built from `settings` at startup, which fails fast if
    the API key is missing.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.analysis_client is None:
            app.state.analysis_client = GeminiChartClient.from_settings(app.state.settings)
        yield

    app = FastAPI(title="Chart Insight", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.analysis_client = analysis_client
    app.add_exception_handler(ChartAnalyzerError, chart_analyzer_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    @app.get("/", response_class=HTMLResponse)
    def index():
        if not os.path.exists(INDEX_PATH):
            return HTMLResponse(content="<h1>index.html not found</h1>", status_code=404)
        with open(INDEX_PATH, "r", encoding="utf-8") as f:
            return HTMLResponse(content=f.read())

    @app.get("/health", response_model=HealthResponse)
    def health(settings: Settings = Depends(get_settings)):
        return HealthResponse(model=settings.model_name)

    @app.get("/analyze", response_model=AnalysisResponse, response_model_exclude_none=True)
    def analyze_sample(
        settings: Settings = Depends(get_settings),
        client: Any = Depends(get_analysis_client),
    ):
        logger.info("Starting chart analysis with sample chart")
        payload = build_from_path(settings.sample_chart_path, max_bytes=settings.max_image_bytes)
        return _run_analysis(client, payload, source="sample")

    @app.post("/analyze", response_model=AnalysisResponse, response_model_exclude_none=True)
    def analyze_upload(
        image: Optional[UploadFile] = File(None),
        settings: Settings = Depends(get_settings),
        client: Any = Depends(get_analysis_client),
    ):
        logger.info("Starting chart analysis from uploaded image")
        if image is None:
            raise MissingInputError("No image file provided")

        data = image.file.read()
        payload = build_from_upload(
            data,
            content_type=image.content_type,
            filename=image.filename,
            max_bytes=settings.max_image_bytes,
        )
        return _run_analysis(client, payload, source="upload")

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn (console script entrypoint)."""
    import uvicorn

    uvicorn.run(
        "chart_analyzer.app.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level="info",
    )
