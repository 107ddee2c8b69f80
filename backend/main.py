"""
Meritboard — Exam Results Analytics
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meritboard.grading import GRADE_LABELS
from routes.analyze import router as analyze_router
from routes.upload import router as upload_router

# Load environment
load_dotenv()

SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
PASS_MARK = int(os.getenv("PASS_MARK", "50"))
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("meritboard.main")

app = FastAPI(
    title="Meritboard API",
    description=(
        "Exam results analytics — grades, merit lists, subject and stream "
        "statistics on the 12-point scale."
    ),
    version="1.0.0",
)

# CORS: allow the dashboard dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route modules
app.include_router(upload_router, prefix="/api/upload", tags=["Upload"])
app.include_router(analyze_router, prefix="/api/analyze", tags=["Analytics"])

logger.info("Meritboard API ready for %s (pass mark %d)", SCHOOL_NAME, PASS_MARK)


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "school_name": SCHOOL_NAME,
        "pass_mark": PASS_MARK,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "school_name": SCHOOL_NAME,
        "pass_mark": PASS_MARK,
        "grades": GRADE_LABELS,
    }
