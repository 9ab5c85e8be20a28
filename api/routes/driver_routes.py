from typing import Dict, List, Optional
from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel

from models.driver import DriverStatus
from models.log_entry import EntityType
from repositories.driver_repository import DriverRepository
from repositories.log_repository import LogRepository
from services.logging_service import LoggingService


router = APIRouter(prefix="/drivers", tags=["drivers"])
repo = DriverRepository()
log_repo = LogRepository()


class DriverStatusUpdate(BaseModel):
    """Model for changing a driver's duty status"""
    status: DriverStatus
    notes: Optional[str] = None


def _get_or_404(driver_id: str) -> Dict:
    driver = repo.get_by_id(driver_id)
    if not driver:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Driver {driver_id} not found"
        )
    return driver


@router.get("/", response_model=List[Dict])
async def get_drivers(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    company_id: Optional[str] = Query(None, description="Filter by company"),
    driver_status: Optional[DriverStatus] = Query(None, alias="status", description="Filter by status")
):
    """Get drivers with pagination and filters"""
    filters = {}
    if company_id:
        filters['company_id'] = company_id
    if driver_status:
        filters['status'] = driver_status.value

    return repo.get_all(skip=skip, limit=limit, filters=filters)


@router.get("/{driver_id}", response_model=Dict)
async def get_driver(driver_id: str):
    """Get a driver by ID"""
    return _get_or_404(driver_id)


@router.patch("/{driver_id}/status", response_model=Dict)
async def update_driver_status(driver_id: str, body: DriverStatusUpdate, request: Request):
    """Change a driver's duty status"""
    driver = _get_or_404(driver_id)
    old_status = driver.get("status")

    result = repo.update(driver_id, {"status": body.status.value})
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update driver"
        )

    context = LoggingService.extract_context(request, notes=body.notes)
    LoggingService(context, log_repo).log(
        EntityType.DRIVERS,
        driver_id,
        "status_changed",
        changes={"status": {"from": old_status, "to": body.status.value}},
        metadata={"reason": context.reason or "Manual status change"},
    )
    return repo.get_by_id(driver_id)


@router.get("/{driver_id}/logs", response_model=List[Dict])
async def get_driver_logs(driver_id: str):
    """Audit trail of a driver, oldest first"""
    _get_or_404(driver_id)
    return log_repo.get_logs(EntityType.DRIVERS, driver_id)
