"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from emoc.api import dashboard, moc_requests, reference, reports, risk_assessment, workflow
from emoc.core.config import settings
from emoc.core.database import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("eMoC API started (%s)", settings.ENVIRONMENT)
    yield


app = FastAPI(title="eMoC Workflow Service", version="1.0.0", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(moc_requests.router, prefix="/moc-requests", tags=["moc-requests"])
# Task transitions share the request prefix
app.include_router(workflow.router, prefix="/moc-requests", tags=["workflow"])
app.include_router(risk_assessment.router, prefix="/risk", tags=["risk"])
app.include_router(reference.router, prefix="/reference", tags=["reference"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])


@app.get("/")
def read_root():
    return {"message": "eMoC Workflow Service API"}


def run():
    """Serve the API with uvicorn using the configured bind address."""
    import uvicorn

    uvicorn.run(
        "emoc.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
