"""
Customer reviews of completed bookings, their public listing and moderation.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from fixfly.core.database import utc_now
from fixfly.core.database.entities.admins import Admin
from fixfly.core.database.entities.reviews import Review
from fixfly.core.database.entities.users import User
from fixfly.core.database.repositories import SqlRepoBundle
from fixfly.core.logging_config import get_logger
from fixfly.core.models.domain.enums import BookingStatus, NotificationType, ReviewSort, ReviewStatus
from fixfly.core.models.io.reviews import CategoryStats, ReviewCreate, ReviewRead, ReviewStats, ReviewUpdate
from fixfly.server.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError

from .notifications import NotificationService

logger = get_logger(__name__)

ANONYMOUS_NAME = "Anonymous"


def to_read(review: Review) -> ReviewRead:
    read = ReviewRead.model_validate(review)
    if review.is_anonymous:
        return read.model_copy(update={"user_name": ANONYMOUS_NAME})
    return read


class ReviewService:
    def __init__(self, repos: SqlRepoBundle):
        self.repos = repos
        self.notifications = NotificationService(repos)

    async def _get(self, review_id: int) -> Review:
        review = await self.repos.reviews.get_by_id(review_id)
        if review is None:
            raise NotFoundError("Review not found")
        return review

    async def _get_owned(self, user: User, review_id: int) -> Review:
        review = await self._get(review_id)
        if review.user_id != user.id:
            raise PermissionDeniedError("Not authorized to change this review")
        return review

    # ------------------------------------------------------------------
    # Customer
    # ------------------------------------------------------------------

    async def create(self, user: User, data: ReviewCreate) -> Review:
        """
        Review one of the customer's completed bookings.

        The review is published straight away and marked verified, since it is
        tied to a job Fixfly actually did.

        Raises:
            NotFoundError: The booking does not exist or belongs to someone else
            ValidationFailedError: The booking is not completed yet
            ConflictError: The booking has already been reviewed
        """
        booking = await self.repos.bookings.get_by_reference(data.booking_reference)
        if booking is None or booking.user_id != user.id:
            raise NotFoundError("Booking not found")
        if booking.status != BookingStatus.completed.value:
            raise ValidationFailedError("Only completed bookings can be reviewed", error_code="BOOKING_NOT_COMPLETED")
        if await self.repos.reviews.get_by_booking_id(booking.id):
            raise ConflictError("booking", "You have already reviewed this booking")

        review = Review(
            user_id=user.id,
            user_name=user.name or booking.customer.get("name", ""),
            booking_id=booking.id,
            vendor_id=booking.vendor_id,
            category=data.category.strip(),
            rating=data.rating,
            comment=data.comment.strip(),
            status=ReviewStatus.approved.value,
            is_verified=True,
            is_anonymous=data.is_anonymous,
        )
        review = await self.repos.reviews.create(review)
        await self.notifications.notify_vendor(
            booking.vendor_id,
            "New review",
            f"Booking {booking.booking_reference} was rated {data.rating}/5",
            notification_type=NotificationType.review,
            data={"review_id": review.id, "booking_reference": booking.booking_reference},
        )
        await self.repos.commit()
        logger.info(f"Review {review.id} created for booking {booking.booking_reference} (rating {review.rating})")
        return review

    async def update(self, user: User, review_id: int, data: ReviewUpdate) -> Review:
        review = await self._get_owned(user, review_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(review, key, value.strip() if isinstance(value, str) else value)
        review = await self.repos.reviews.update(review)
        await self.repos.commit()
        return review

    async def delete(self, user: User, review_id: int) -> None:
        review = await self._get_owned(user, review_id)
        await self.repos.reviews.delete(review.id)
        await self.repos.commit()
        logger.info(f"Review {review_id} deleted by user {user.id}")

    async def toggle_like(self, user: User, review_id: int) -> Review:
        """Like the review, or take the like back when the user already liked it."""
        review = await self.get_public(review_id)
        if review.user_id == user.id:
            raise ValidationFailedError("You cannot like your own review")
        if user.id in review.liked_by:
            review.liked_by = [uid for uid in review.liked_by if uid != user.id]
        else:
            review.liked_by = [*review.liked_by, user.id]
        review.likes = len(review.liked_by)
        review = await self.repos.reviews.update(review)
        await self.repos.commit()
        return review

    async def list_for_user(self, user: User, limit: int = 20, offset: int = 0) -> Tuple[List[Review], int]:
        return await self.repos.reviews.search(user_id=user.id, limit=limit, offset=offset)

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def get_public(self, review_id: int) -> Review:
        review = await self._get(review_id)
        if review.status != ReviewStatus.approved.value:
            raise NotFoundError("Review not found")
        return review

    async def list_public(
        self,
        category: Optional[str] = None,
        rating: Optional[int] = None,
        featured: Optional[bool] = None,
        sort: ReviewSort = ReviewSort.newest,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Review], int]:
        """Approved reviews, featured ones first."""
        return await self.repos.reviews.search(
            status=ReviewStatus.approved.value,
            category=category,
            rating=rating,
            featured=featured,
            sort=sort.value,
            featured_first=True,
            limit=limit,
            offset=offset,
        )

    async def list_featured(self, limit: int = 6) -> List[Review]:
        reviews, _ = await self.repos.reviews.search(
            status=ReviewStatus.approved.value, featured=True, limit=limit
        )
        return reviews

    async def stats(self) -> ReviewStats:
        approved = ReviewStatus.approved.value
        total, average = await self.repos.reviews.rating_summary(approved)
        distribution = await self.repos.reviews.count_by_rating(approved)
        categories = await self.repos.reviews.category_summary(approved)
        return ReviewStats(
            total_reviews=total,
            average_rating=round(average, 1),
            rating_distribution={stars: distribution.get(stars, 0) for stars in range(1, 6)},
            categories=[
                CategoryStats(category=category, count=count, average_rating=round(avg, 1))
                for category, count, avg in categories
            ],
        )

    async def vendor_rating(self, vendor_id: str) -> Tuple[int, float]:
        """Number of approved reviews of the vendor and their average rating."""
        count, average = await self.repos.reviews.rating_summary(ReviewStatus.approved.value, vendor_id=vendor_id)
        return count, round(average, 1)

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    async def search(
        self,
        status: Optional[ReviewStatus] = None,
        category: Optional[str] = None,
        rating: Optional[int] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Review], int]:
        return await self.repos.reviews.search(
            status=status.value if status else None, category=category, rating=rating, limit=limit, offset=offset
        )

    async def set_status(self, review_id: int, status: ReviewStatus) -> Review:
        """Change the moderation status. A review leaving ``approved`` is also unfeatured."""
        review = await self._get(review_id)
        review.status = status.value
        if status != ReviewStatus.approved:
            review.is_featured = False
        review = await self.repos.reviews.update(review)
        await self.repos.commit()
        logger.info(f"Review {review_id} status set to {status.value}")
        return review

    async def respond(self, review_id: int, admin: Admin, message: str) -> Review:
        review = await self._get(review_id)
        review.admin_response = {
            "message": message.strip(),
            "responded_by": admin.id,
            "responded_at": utc_now().isoformat(),
        }
        review = await self.repos.reviews.update(review)
        await self.notifications.notify_user(
            review.user_id,
            "Fixfly replied to your review",
            message.strip(),
            notification_type=NotificationType.review,
            data={"review_id": review.id},
        )
        await self.repos.commit()
        return review

    async def toggle_featured(self, review_id: int) -> Review:
        review = await self._get(review_id)
        if not review.is_featured and review.status != ReviewStatus.approved.value:
            raise ValidationFailedError("Only approved reviews can be featured")
        review.is_featured = not review.is_featured
        review = await self.repos.reviews.update(review)
        await self.repos.commit()
        return review
