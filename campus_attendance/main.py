# campus_attendance/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus_attendance.api.v1.api import api_router
from campus_attendance.core.config import settings
from campus_attendance.db.session import engine
from campus_attendance.models import Base
from campus_attendance.services.qr.qr_signing import get_qr_secret

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Campus attendance service starting up...")

    if settings.is_production and not settings.QR_SECRET:
        raise RuntimeError("QR_SECRET must be set when ENV=prod")
    # Emits the fallback-secret warning at startup rather than on first scan.
    get_qr_secret()

    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables checked and created if necessary.")

    yield
    logger.info("Campus attendance service shutting down...")


app = FastAPI(
    title="Campus Registration & Attendance Service",
    version="1.0.0",
    description="""
        Event registration and QR-code attendance for university events.

        ## Features

        * **Registration**: individual and team sign-ups with outsider quotas
        * **QR Attendance**: signed, time-bounded QR codes checked at the venue
        * **Scan Audit Log**: every scan attempt is recorded
        """,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.get("/")
def read_root():
    return {"status": "Campus attendance service is running"}
