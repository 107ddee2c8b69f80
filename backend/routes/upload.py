"""
Upload routes — accept a CSV results sheet and return its analysis.
"""

import logging
import os
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from meritboard.pipeline import AnalysisError, analyze_csv

router = APIRouter()
logger = logging.getLogger("meritboard.api")

PASS_MARK = int(os.getenv("PASS_MARK", "50"))
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@router.post("/file")
async def upload_file(file: UploadFile = File(...)):
    """
    Upload a CSV file (header line + one line per student).
    Returns the full analysis of the sheet.
    """
    ext = Path(file.filename or "").suffix.lower()
    if ext != ".csv":
        logger.warning("Rejected upload '%s': unsupported type %s", file.filename, ext)
        raise HTTPException(400, f"Unsupported file type: {ext or 'none'}. Use CSV.")

    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(400, "File is too large.")

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Rejected upload '%s': not UTF-8 text", file.filename)
        raise HTTPException(400, f"Failed to read '{file.filename}': file is not UTF-8 text.")

    try:
        result = analyze_csv(text, pass_mark=PASS_MARK)
    except AnalysisError as e:
        raise HTTPException(400, f"Unable to analyze '{file.filename}': {e}")

    return {
        "filename": file.filename,
        "analysis": result.to_dict(),
    }
