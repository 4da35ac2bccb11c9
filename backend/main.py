"""
ReportCard — Primary school grading and report card engine.
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment before route modules read their settings
load_dotenv()

from routes.analyze import router as analyze_router  # noqa: E402
from routes.grading import router as grading_router  # noqa: E402
from routes.reports import MARKS_API_URL, router as reports_router  # noqa: E402

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ReportCard API",
    description=(
        "Termly report cards for primary schools: CA, beginning, mid and "
        "end of term marks graded against the school's own scale."
    ),
    version="1.0.0",
)

# CORS — allow the React dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route modules
app.include_router(grading_router, prefix="/api/grading", tags=["Grading"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])
app.include_router(analyze_router, prefix="/api/analyze", tags=["Analytics"])

logger.info("ReportCard API ready (marks API %s)", MARKS_API_URL or "not configured")


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "school_name": SCHOOL_NAME,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "marks_api_configured": bool(MARKS_API_URL),
    }
