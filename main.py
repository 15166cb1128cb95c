"""Main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import refresh_scheduler
from src.api.error_handlers import validation_exception_handler
from src.api.routes import router
from src.utils.config import config
from src.utils.logger import StructuredLogger

logger = StructuredLogger("Application")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    # Startup
    try:
        config.validate()
    except ValueError as e:
        logger.critical(f"Configuration error: {e}", exception=e)
        raise
    if config.refresh.auto_start:
        refresh_scheduler.start()
    yield
    # Shutdown
    refresh_scheduler.stop()


# Create FastAPI app
app = FastAPI(
    title="BitEye Scanner",
    description="Real-time crypto momentum tracker for the top 500 assets by market cap",
    version="1.0.0",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Include API routes
app.include_router(router, prefix="/api", tags=["scanner"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "scheduler_running": refresh_scheduler.is_running}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
