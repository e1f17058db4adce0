"""
Lawyer directory service: profiles, verification and ratings.
"""

import logging
from typing import List, Optional

from lawhelp.core.exceptions import AccessDeniedError, InvalidRequestError, NotFoundError
from lawhelp.models import Lawyer, User
from lawhelp.schemas import (
    LawyerCreate, LawyerRatingCreate, LawyerRatingResponse, LawyerResponse, LawyerUpdate,
)
from lawhelp.services.notification_service import NotificationService
from lawhelp.storage import LawyerFilters, Storage

logger = logging.getLogger(__name__)


def average_rating(ratings: List[int]) -> float:
    """Mean star rating rounded to one decimal, 0.0 when unrated."""
    if not ratings:
        return 0.0
    return round(sum(ratings) / len(ratings), 1)


class LawyerService:
    def __init__(self, storage: Storage, notifications: Optional[NotificationService] = None):
        self.storage = storage
        self.notifications = notifications or NotificationService(storage)

    def _get(self, lawyer_id: int) -> Lawyer:
        lawyer = self.storage.get_lawyer(lawyer_id)
        if lawyer is None:
            raise NotFoundError("Lawyer not found")
        return lawyer

    def list_lawyers(self, filters: LawyerFilters) -> List[LawyerResponse]:
        return [LawyerResponse.model_validate(lawyer) for lawyer in self.storage.get_lawyers(filters)]

    def get_lawyer(self, lawyer_id: int) -> LawyerResponse:
        return LawyerResponse.model_validate(self._get(lawyer_id))

    def create_profile(self, user: User, data: LawyerCreate) -> LawyerResponse:
        """Register the user as a lawyer. Profiles start unverified."""
        lawyer = self.storage.create_lawyer(user_id=user.id, **data.model_dump())
        changes = {"is_lawyer": True}
        if not user.is_admin():
            changes["role"] = "lawyer"
        self.storage.update_user(user.id, **changes)
        logger.info(f"Lawyer profile {lawyer.id} created for user {user.id}")
        return LawyerResponse.model_validate(self.storage.get_lawyer(lawyer.id))

    def update_profile(self, lawyer_id: int, user: User, data: LawyerUpdate) -> LawyerResponse:
        lawyer = self._get(lawyer_id)
        if lawyer.user_id != user.id and not user.is_admin():
            raise AccessDeniedError("Only the profile owner can update it")
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        return LawyerResponse.model_validate(self.storage.update_lawyer(lawyer_id, **changes))

    async def verify(self, lawyer_id: int, verified: bool = True) -> LawyerResponse:
        lawyer = self._get(lawyer_id)
        updated = self.storage.update_lawyer(lawyer_id, is_verified=verified)
        logger.info(f"Lawyer {lawyer_id} verification set to {verified}")
        if verified and not lawyer.is_verified:
            await self.notifications.notify(
                lawyer.user_id,
                "Profile Verified",
                "Your lawyer profile has been verified and is now marked as trusted in the directory.",
                type="success",
            )
        return LawyerResponse.model_validate(updated)

    def list_ratings(self, lawyer_id: int) -> List[LawyerRatingResponse]:
        self._get(lawyer_id)
        return [LawyerRatingResponse.model_validate(r) for r in self.storage.get_lawyer_ratings(lawyer_id)]

    async def rate(self, lawyer_id: int, user: User, data: LawyerRatingCreate) -> LawyerRatingResponse:
        """
        Record a rating and recompute the lawyer's average and count.

        Raises:
            NotFoundError: Unknown lawyer
            InvalidRequestError: The user is rating their own profile
        """
        lawyer = self._get(lawyer_id)
        if lawyer.user_id == user.id:
            raise InvalidRequestError("You cannot rate your own profile")

        rating = self.storage.create_lawyer_rating(
            lawyer_id=lawyer_id, user_id=user.id, rating=data.rating, review=data.review
        )
        stars = [r.rating for r in self.storage.get_lawyer_ratings(lawyer_id)]
        self.storage.update_lawyer(lawyer_id, rating=average_rating(stars), total_ratings=len(stars))

        await self.notifications.notify(
            lawyer.user_id,
            "New Rating",
            f"{user.name} rated you {data.rating}/5.",
            type="info",
        )
        return LawyerRatingResponse.model_validate(rating)
