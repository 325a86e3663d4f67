from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from screening.routers import analyses, resumes, vacancies

from screening.utils.logging_config import configure_for_environment, get_logger
from screening.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Screening API starting up...")
    logger.info("Initializing database indexes...")

    try:
        from screening.services.db import init_indexes
        await init_indexes()
        logger.info("Database indexes initialized successfully")
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    logger.info("Screening API startup completed")

    yield

    logger.info("Screening API shutting down...")

app = FastAPI(title="Candidate Screening API", version="1.0.0", lifespan=lifespan)

# Middleware runs LIFO: the last one added is the outermost
app.add_middleware(PerformanceMiddleware, slow_request_threshold=5.0)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    """Service banner"""
    return {"message": "Candidate Screening API", "version": "1.0.0", "status": "ok"}

app.include_router(analyses.router, prefix="/api")
app.include_router(resumes.router, prefix="/api")
app.include_router(vacancies.router, prefix="/api")

logger.info("Screening API initialized successfully")
