"""
Candidate API endpoints.

CV intake (upload to the CV bucket, AI field extraction) and candidate
persistence.
"""

import time
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruitcrm.api.routes.auth import get_current_user
from recruitcrm.core.errors import APIError, database_error
from recruitcrm.core.logging import get_logger
from recruitcrm.db.base import as_dict
from recruitcrm.db.session import get_db
from recruitcrm.models import Candidate, User
from recruitcrm.services.ai_client import AIClientError, GeminiClient, get_ai_client
from recruitcrm.services.candidates import (
    CandidatePayloadError,
    build_candidate,
    prepare_candidate_row,
)
from recruitcrm.services.cv_parser import CV_PROMPT, parse_cv_response
from recruitcrm.services.storage import StorageError, get_cv_bucket

logger = get_logger("candidates")

router = APIRouter()


# ============== Pydantic Schemas ==============


class CandidateIdRequest(BaseModel):
    id: Optional[int] = None


# ============== Helper Functions ==============


def serialize_candidate(candidate: Candidate) -> dict:
    return jsonable_encoder(as_dict(candidate))


def _require_candidate_id(body: CandidateIdRequest) -> int:
    if body.id is None:
        raise APIError(status.HTTP_400_BAD_REQUEST, "Candidate ID is required")
    return body.id


def _stored_file_name(cv_url: str) -> str:
    # cv_url holds a bucket path, but older rows may hold a full URL
    return cv_url.split("/")[-1] if "/" in cv_url else cv_url


def _remove_stored_cv(bucket, candidate: Candidate) -> None:
    """Remove a candidate's CV file; storage failures are logged, not raised."""
    if not candidate.cv_url:
        return

    file_name = _stored_file_name(candidate.cv_url)
    logger.info(f"Attempting to delete CV file: {file_name}")
    try:
        bucket.remove([file_name])
    except StorageError as e:
        logger.error(f"Error deleting CV from storage: {e}")


# ============== API Endpoints ==============


@router.get("")
async def list_candidates(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Paginated candidates, newest first, optionally filtered by a search term."""
    query = db.query(Candidate)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Candidate.first_name.ilike(term),
                Candidate.last_name.ilike(term),
                Candidate.email_1.ilike(term),
                Candidate.title.ilike(term),
                Candidate.skills.ilike(term),
            )
        )

    try:
        count = query.count()
        rows = (
            query.order_by(Candidate.created_at.desc(), Candidate.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        raise database_error(e, "Failed to fetch candidates")

    return {
        "data": [serialize_candidate(row) for row in rows],
        "count": count,
        "page": page,
        "limit": limit,
    }


@router.post("/parse-cv")
def parse_cv(
    cv: Optional[UploadFile] = File(None),
    ai_client: GeminiClient = Depends(get_ai_client),
    current_user: User = Depends(get_current_user),
):
    """
    Extract candidate fields from an uploaded CV with Gemini.

    Returns ``{"success": true, "data": {...}}``. When the model answer is not
    valid JSON the raw answer is returned as ``rawResponse`` for inspection.
    """
    if cv is None:
        raise APIError(status.HTTP_400_BAD_REQUEST, "No CV file provided")

    content = cv.file.read()

    try:
        generation = ai_client.generate(
            CV_PROMPT,
            document=content,
            mime_type=cv.content_type or "application/pdf",
        )
    except AIClientError as e:
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to parse CV: {e}",
            extra={"success": False},
        )

    try:
        data = parse_cv_response(generation.text)
    except ValueError as e:
        logger.error(f"Error parsing Gemini response as JSON: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Failed to parse JSON from Gemini",
                "rawResponse": generation.text,
            },
        )

    return {"success": True, "data": data}


@router.post("/upload-cv")
def upload_cv(
    cv: Optional[UploadFile] = File(None),
    bucket=Depends(get_cv_bucket),
    current_user: User = Depends(get_current_user),
):
    """Store a PDF CV in the CV bucket under a timestamp-prefixed name."""
    if cv is None:
        raise APIError(status.HTTP_400_BAD_REQUEST, "No file provided")

    if "pdf" not in (cv.content_type or "").lower():
        raise APIError(status.HTTP_400_BAD_REQUEST, "Only PDF files are allowed")

    original_name = Path(cv.filename or "cv.pdf").name
    file_name = f"{int(time.time() * 1000)}_{original_name}"
    content = cv.file.read()

    try:
        file_path = bucket.upload(file_name, content, cv.content_type)
    except StorageError as e:
        logger.error(f"Storage upload error: {e}")
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Upload failed: {e}")

    return {
        "success": True,
        "filePath": file_path,
        "publicUrl": bucket.public_url(file_path),
    }


@router.post("/save")
async def save_candidate(
    candidate_data: dict = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Insert one candidate row from a JSON payload and return it."""
    row = prepare_candidate_row(candidate_data)

    try:
        candidate = build_candidate(row)
    except CandidatePayloadError as e:
        logger.error(f"Database error: {e}")
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to save candidate: {e}")

    db.add(candidate)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to save candidate")

    db.refresh(candidate)
    return {"success": True, "candidate": serialize_candidate(candidate)}


@router.post("/delete-cv")
def delete_cv(
    body: CandidateIdRequest,
    db: Session = Depends(get_db),
    bucket=Depends(get_cv_bucket),
    current_user: User = Depends(get_current_user),
):
    """Remove a candidate's stored CV and clear the reference."""
    candidate_id = _require_candidate_id(body)

    candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
    if not candidate:
        raise APIError(status.HTTP_404_NOT_FOUND, "Candidate not found")

    _remove_stored_cv(bucket, candidate)

    candidate.cv_url = None
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to update candidate")

    db.refresh(candidate)
    return {"success": True, "candidate": serialize_candidate(candidate)}


@router.delete("/delete")
def delete_candidate(
    body: CandidateIdRequest,
    db: Session = Depends(get_db),
    bucket=Depends(get_cv_bucket),
    current_user: User = Depends(get_current_user),
):
    """Delete a candidate together with its stored CV."""
    candidate_id = _require_candidate_id(body)

    candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
    if not candidate:
        raise APIError(status.HTTP_404_NOT_FOUND, "Candidate not found")

    _remove_stored_cv(bucket, candidate)

    db.delete(candidate)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to delete candidate")

    return {"message": "Candidate deleted successfully"}


@router.get("/{candidate_id}")
async def get_candidate(
    candidate_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
    if not candidate:
        raise APIError(status.HTTP_404_NOT_FOUND, "Candidate not found")
    return serialize_candidate(candidate)
