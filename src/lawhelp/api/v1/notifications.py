import logging
from fastapi import APIRouter, Depends

from lawhelp.api.v1.auth import get_current_user
from lawhelp.core.dependencies import get_storage
from lawhelp.core.response_utils import create_success_response, ResponseTimer
from lawhelp.models import User
from lawhelp.schemas import StandardResponse
from lawhelp.services.notification_service import NotificationService
from lawhelp.storage import Storage

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=StandardResponse)
def list_notifications(current_user: User = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    """Current user's notifications, newest first."""
    with ResponseTimer() as timer:
        return create_success_response(
            data=NotificationService(storage).list_for_user(current_user),
            execution_time=timer.get_execution_time()
        )


@router.patch("/{notification_id}/read", response_model=StandardResponse)
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    with ResponseTimer() as timer:
        NotificationService(storage).mark_read(notification_id, current_user)
        return create_success_response(
            data=None,
            message="Notification marked as read",
            execution_time=timer.get_execution_time()
        )
