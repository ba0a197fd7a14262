"""
Company API endpoints.

Company records plus AI enrichment from a public company profile page.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recruitcrm.api.routes.auth import get_current_user
from recruitcrm.core.errors import APIError, database_error
from recruitcrm.core.logging import get_logger
from recruitcrm.db.base import as_dict
from recruitcrm.db.session import get_db
from recruitcrm.models import Company, User
from recruitcrm.services.ai_client import AIClientError, GeminiClient, get_ai_client
from recruitcrm.services.enrichment import (
    PageFetcher,
    ScrapeError,
    build_enrichment_prompt,
    get_page_fetcher,
    normalize_company_response,
)

logger = get_logger("companies")

router = APIRouter()


# ============== Pydantic Schemas ==============


class EnrichRequest(BaseModel):
    linkedinUrl: Optional[str] = None


class CompanyCreate(BaseModel):
    company_name: str
    location: Optional[str] = None
    industry: Optional[str] = None
    number_of_employees: Optional[str] = None
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    status: Optional[str] = None


class CompanyUpdate(BaseModel):
    company_name: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    number_of_employees: Optional[str] = None
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    status: Optional[str] = None


def serialize_company(company: Company) -> dict:
    return jsonable_encoder(as_dict(company))


def _get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise APIError(status.HTTP_404_NOT_FOUND, "Company not found")
    return company


# ============== API Endpoints ==============


@router.post("/enrich")
def enrich_company(
    body: EnrichRequest,
    ai_client: GeminiClient = Depends(get_ai_client),
    fetcher: PageFetcher = Depends(get_page_fetcher),
    current_user: User = Depends(get_current_user),
):
    """
    Enrich a company from its LinkedIn page.

    The page text is handed to Gemini and the answer is reduced to
    company_name, location, industry, number_of_employees and website. Fields
    the model could not fill come back as empty strings.
    """
    linkedin_url = (body.linkedinUrl or "").strip()
    if not linkedin_url:
        raise APIError(status.HTTP_400_BAD_REQUEST, "LinkedIn URL is required")

    logger.info(f"Starting enrichment for: {linkedin_url}")

    try:
        content = fetcher.fetch(linkedin_url)
    except ScrapeError as e:
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to scrape LinkedIn main page: {e}",
        )

    if not content.strip():
        raise APIError(
            status.HTTP_400_BAD_REQUEST,
            "No content could be scraped from the LinkedIn main page",
        )

    try:
        generation = ai_client.generate(build_enrichment_prompt(content))
    except AIClientError as e:
        raise APIError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to process content with AI: {e}",
        )

    if not generation.text.strip():
        raise APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, "No response received from AI service")

    enriched = normalize_company_response(generation.text)
    logger.info(f"Final enriched data: {enriched}")

    return {
        "success": True,
        "data": enriched,
        "tokenUsage": generation.token_usage,
    }


@router.get("")
async def list_companies(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Company)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Company.company_name.ilike(term),
                Company.industry.ilike(term),
                Company.location.ilike(term),
            )
        )

    try:
        count = query.count()
        rows = (
            query.order_by(Company.created_at.desc(), Company.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        raise database_error(e, "Failed to fetch companies")

    return {
        "data": [serialize_company(row) for row in rows],
        "count": count,
        "page": page,
        "limit": limit,
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_company(
    company_data: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not company_data.company_name.strip():
        raise APIError(status.HTTP_400_BAD_REQUEST, "Company name is required")

    company = Company(**company_data.model_dump(), created_by=current_user.id)
    db.add(company)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to save company")

    db.refresh(company)
    return serialize_company(company)


@router.get("/{company_id}")
async def get_company(
    company_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return serialize_company(_get_company_or_404(db, company_id))


@router.put("/{company_id}")
async def update_company(
    company_id: int,
    company_data: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = _get_company_or_404(db, company_id)
    for key, value in company_data.model_dump(exclude_unset=True).items():
        setattr(company, key, value)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to update company")

    db.refresh(company)
    return serialize_company(company)


@router.delete("/{company_id}")
async def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = _get_company_or_404(db, company_id)
    db.delete(company)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e, "Failed to delete company")

    return {"message": "Company deleted", "company_id": company_id}
