import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from lawhelp.api.v1.auth import get_current_user, require_admin_role
from lawhelp.core.dependencies import get_storage
from lawhelp.core.response_utils import create_success_response, ResponseTimer
from lawhelp.models import User
from lawhelp.schemas import LawyerCreate, LawyerRatingCreate, LawyerUpdate, StandardResponse
from lawhelp.services.lawyer_service import LawyerService
from lawhelp.storage import LawyerFilters, Storage

logger = logging.getLogger(__name__)
router = APIRouter()


def get_lawyer_service(storage: Storage = Depends(get_storage)) -> LawyerService:
    return LawyerService(storage)


@router.get("", response_model=StandardResponse)
def list_lawyers(
    specialization: Optional[str] = Query(None, description="Area of practice, partial match"),
    location: Optional[str] = Query(None, description="City or region, partial match"),
    language: Optional[str] = Query(None, description="Spoken language, partial match"),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    verified: Optional[bool] = Query(None),
    service: LawyerService = Depends(get_lawyer_service),
):
    """Search the lawyer directory, best rated first."""
    with ResponseTimer() as timer:
        filters = LawyerFilters(
            specialization=specialization,
            location=location,
            language=language,
            min_rating=min_rating,
            verified=verified,
        )
        return create_success_response(
            data=service.list_lawyers(filters),
            execution_time=timer.get_execution_time()
        )


@router.post("", response_model=StandardResponse, status_code=201)
def create_lawyer_profile(
    lawyer_data: LawyerCreate,
    current_user: User = Depends(get_current_user),
    service: LawyerService = Depends(get_lawyer_service),
):
    """Create the current user's lawyer profile."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.create_profile(current_user, lawyer_data),
            status_code=201,
            execution_time=timer.get_execution_time()
        )


@router.get("/{lawyer_id}", response_model=StandardResponse)
def get_lawyer(lawyer_id: int, service: LawyerService = Depends(get_lawyer_service)):
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.get_lawyer(lawyer_id),
            execution_time=timer.get_execution_time()
        )


@router.patch("/{lawyer_id}", response_model=StandardResponse)
def update_lawyer_profile(
    lawyer_id: int,
    update_data: LawyerUpdate,
    current_user: User = Depends(get_current_user),
    service: LawyerService = Depends(get_lawyer_service),
):
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.update_profile(lawyer_id, current_user, update_data),
            execution_time=timer.get_execution_time()
        )


@router.patch("/{lawyer_id}/verify", response_model=StandardResponse)
async def verify_lawyer(
    lawyer_id: int,
    admin_user: User = Depends(require_admin_role),
    service: LawyerService = Depends(get_lawyer_service),
):
    """Mark a lawyer profile as verified (admin only)."""
    with ResponseTimer() as timer:
        lawyer = await service.verify(lawyer_id)
        logger.info(f"Admin {admin_user.id} verified lawyer {lawyer_id}")
        return create_success_response(
            data=lawyer,
            execution_time=timer.get_execution_time()
        )


@router.get("/{lawyer_id}/ratings", response_model=StandardResponse)
def list_lawyer_ratings(lawyer_id: int, service: LawyerService = Depends(get_lawyer_service)):
    with ResponseTimer() as timer:
        return create_success_response(
            data=service.list_ratings(lawyer_id),
            execution_time=timer.get_execution_time()
        )


@router.post("/{lawyer_id}/ratings", response_model=StandardResponse, status_code=201)
async def rate_lawyer(
    lawyer_id: int,
    rating_data: LawyerRatingCreate,
    current_user: User = Depends(get_current_user),
    service: LawyerService = Depends(get_lawyer_service),
):
    """Rate a lawyer from 1 to 5 stars."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=await service.rate(lawyer_id, current_user, rating_data),
            status_code=201,
            execution_time=timer.get_execution_time()
        )
