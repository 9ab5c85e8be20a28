from typing import Dict, List
from fastapi import APIRouter, HTTPException, Query, Request, status

from models.company import CompanyCreate
from models.log_entry import EntityType
from repositories.application_repository import ApplicationRepository
from repositories.company_repository import CompanyRepository
from repositories.log_repository import LogRepository
from services.logging_service import LoggingService


router = APIRouter(prefix="/companies", tags=["companies"])
repo = CompanyRepository()
application_repo = ApplicationRepository()
log_repo = LogRepository()


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_company(company: CompanyCreate, request: Request):
    """Create a new company"""
    if repo.slug_exists(company.slug):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Company with slug {company.slug} already exists"
        )

    result = repo.create(company)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create company"
        )

    LoggingService(LoggingService.extract_context(request), log_repo).log(
        EntityType.COMPANIES,
        result["id"],
        "created",
        metadata={"name": company.name, "slug": company.slug},
    )
    return repo.get_by_id(result["id"])


@router.get("/", response_model=List[Dict])
async def get_companies(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return")
):
    """Get all companies with pagination"""
    return repo.get_all(skip=skip, limit=limit)


@router.get("/by-slug/{slug}", response_model=Dict)
async def get_company_by_slug(slug: str):
    """Get the company behind a public application form"""
    company = repo.get_by_slug(slug)
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company with slug {slug} not found"
        )
    return company


@router.get("/{company_id}", response_model=Dict)
async def get_company(company_id: str):
    """Get a company by ID"""
    company = repo.get_by_id(company_id)
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found"
        )
    return company


@router.get("/{company_id}/statistics", response_model=Dict)
async def get_company_statistics(company_id: str):
    """Application counts per status for one company"""
    if not repo.exists(company_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found"
        )
    return application_repo.get_status_counts(company_id)


@router.get("/{company_id}/logs", response_model=List[Dict])
async def get_company_logs(company_id: str):
    """Audit trail of a company, oldest first"""
    if not repo.exists(company_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found"
        )
    return log_repo.get_logs(EntityType.COMPANIES, company_id)
