import logging
from fastapi import APIRouter, Depends

from lawhelp.api.v1.auth import get_current_user
from lawhelp.core.dependencies import get_storage
from lawhelp.core.response_utils import create_success_response, ResponseTimer
from lawhelp.models import User
from lawhelp.schemas import StandardResponse, UserResponse, UserUpdate
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/profile", response_model=StandardResponse)
def get_user_profile(current_user: User = Depends(get_current_user)):
    """Get current user's profile information."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=UserResponse.model_validate(current_user),
            execution_time=timer.get_execution_time()
        )


@router.patch("/profile", response_model=StandardResponse)
def update_user_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Update name, phone, location or profile picture."""
    with ResponseTimer() as timer:
        changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            parts = changes["name"].split(' ')
            changes["first_name"] = parts[0] or changes["name"]
            changes["last_name"] = ' '.join(parts[1:])

        user = storage.update_user(current_user.id, **changes)
        logger.info(f"Profile updated for user {user.id}: {sorted(changes)}")

        return create_success_response(
            data=UserResponse.model_validate(user),
            message="Profile updated successfully",
            execution_time=timer.get_execution_time()
        )
