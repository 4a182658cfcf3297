"""FastAPI app receiving GitHub webhooks and running reviews in the background."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.config import settings
from src.core.exceptions import ApiException
from src.core.logging import get_logger
from src.core.schemas.responses import ErrorResponse, HealthResponse
from src.services.github.routes import router as github_router

logger = get_logger("main")

app = FastAPI(
    title="LangGraph PR Reviewer",
    description="Reviews GitHub pull requests and answers review threads with an LLM",
    version="0.1.0",
)


@app.exception_handler(ApiException)
async def api_exception_handler(request: Request, exc: ApiException) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} failed: {exc.message} (status={exc.status_code})")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, details=exc.details or None).model_dump(),
    )


app.include_router(github_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "service": "langgraph-pr-reviewer",
        "version": app.version,
        "webhook": "/api/webhook/github",
    }


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe; also reports the configured model."""
    return HealthResponse(
        ai_provider=settings.ai_provider,
        ai_model=settings.ai_provider_model,
    )


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Listening for GitHub webhooks on {settings.host}:{settings.port}")
    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
