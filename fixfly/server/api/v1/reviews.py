"""
Review Endpoints.

Anyone can read approved reviews. Customers review their completed bookings,
edit or delete their own reviews and like other customers' reviews.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from fixfly.core.models.domain.enums import ReviewSort
from fixfly.core.models.io.common import MessageResponse, Page
from fixfly.core.models.io.reviews import LikeResult, ReviewCreate, ReviewRead, ReviewStats, ReviewUpdate
from fixfly.server.services.deps import CurrentUserDep, ReviewServiceDep
from fixfly.server.services.reviews import to_read

router = APIRouter()


@router.get(
    "",
    response_model=Page[ReviewRead],
    summary="List Reviews",
    description="Approved reviews, featured ones first, then in the requested sort order.",
)
async def list_reviews(
    reviews: ReviewServiceDep,
    category: Optional[str] = None,
    rating: Optional[int] = Query(None, ge=1, le=5),
    featured: Optional[bool] = None,
    sort: ReviewSort = ReviewSort.newest,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[ReviewRead]:
    items, total = await reviews.list_public(category, rating, featured, sort, limit, offset)
    return Page[ReviewRead](items=[to_read(r) for r in items], total=total, limit=limit, offset=offset)


@router.get("/featured", response_model=List[ReviewRead], summary="Featured Reviews")
async def featured_reviews(reviews: ReviewServiceDep, limit: int = Query(6, ge=1, le=50)) -> List[ReviewRead]:
    return [to_read(r) for r in await reviews.list_featured(limit)]


@router.get("/stats", response_model=ReviewStats, summary="Review Statistics")
async def review_stats(reviews: ReviewServiceDep) -> ReviewStats:
    return await reviews.stats()


@router.get("/me", response_model=Page[ReviewRead], summary="My Reviews")
async def my_reviews(
    user: CurrentUserDep,
    reviews: ReviewServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[ReviewRead]:
    items, total = await reviews.list_for_user(user, limit, offset)
    return Page[ReviewRead](items=[to_read(r) for r in items], total=total, limit=limit, offset=offset)


@router.get("/category/{category}", response_model=Page[ReviewRead], summary="Reviews By Category")
async def reviews_by_category(
    category: str,
    reviews: ReviewServiceDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Page[ReviewRead]:
    items, total = await reviews.list_public(category=category, limit=limit, offset=offset)
    return Page[ReviewRead](items=[to_read(r) for r in items], total=total, limit=limit, offset=offset)


@router.get(
    "/{review_id}",
    response_model=ReviewRead,
    summary="Get Review",
    responses={404: {"description": "Review not found or not published"}},
)
async def get_review(review_id: int, reviews: ReviewServiceDep) -> ReviewRead:
    return to_read(await reviews.get_public(review_id))


@router.post(
    "",
    response_model=ReviewRead,
    status_code=status.HTTP_201_CREATED,
    summary="Review Booking",
    description="Rate a completed booking of the logged in customer. Each booking can be reviewed once.",
    responses={
        400: {"description": "Booking not completed or already reviewed"},
        404: {"description": "Booking not found"},
    },
)
async def create_review(data: ReviewCreate, user: CurrentUserDep, reviews: ReviewServiceDep) -> ReviewRead:
    """
    Review a booking.

    - **booking_reference**: A completed booking of the customer
    - **rating**: 1 to 5 stars
    - **comment**: 10 to 500 characters
    - **is_anonymous**: Hide the customer name on the public listing
    """
    return to_read(await reviews.create(user, data))


@router.put("/{review_id}", response_model=ReviewRead, summary="Update Review")
async def update_review(
    review_id: int, data: ReviewUpdate, user: CurrentUserDep, reviews: ReviewServiceDep
) -> ReviewRead:
    return to_read(await reviews.update(user, review_id, data))


@router.delete("/{review_id}", response_model=MessageResponse, summary="Delete Review")
async def delete_review(review_id: int, user: CurrentUserDep, reviews: ReviewServiceDep) -> MessageResponse:
    await reviews.delete(user, review_id)
    return MessageResponse(message="Review deleted successfully")


@router.post("/{review_id}/like", response_model=LikeResult, summary="Like Or Unlike Review")
async def toggle_like(review_id: int, user: CurrentUserDep, reviews: ReviewServiceDep) -> LikeResult:
    review = await reviews.toggle_like(user, review_id)
    return LikeResult(likes=review.likes, liked=user.id in review.liked_by)
