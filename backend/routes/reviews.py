# backend/routes/reviews.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session, selectinload

from database import get_db
from models.review import Review
from models.users import User
from schemas.review import ReviewCreate, ReviewOut
from services.catalog import get_product_or_404
from utils.audit import client_ip, write_log
from utils.tokenJWT import customer_only

router = APIRouter(prefix="/customer/reviews", tags=["Reviews"])


def review_to_out(review: Review) -> ReviewOut:
    return ReviewOut(
        id=review.id,
        product_id=review.product_id,
        product_name=review.product.name if review.product else "",
        user_id=review.user_id,
        user_name=review.user.name if review.user else "",
        user_email=review.user.email if review.user else "",
        rating=review.rating,
        comment=review.comment,
        created_at=review.created_at,
    )


@router.post("", response_model=ReviewOut, status_code=201)
def create_review(
    payload: ReviewCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    product = get_product_or_404(db, payload.product_id)

    review = Review(
        product_id=product.id,
        user_id=current_user.id,
        rating=payload.rating,
        comment=payload.comment.strip(),
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    write_log(db, user_id=current_user.id, action="REVIEW_CREATE", resource="reviews",
              ip=client_ip(request), meta={"product_id": product.id, "rating": payload.rating})
    return review_to_out(review)


# Reviews written by the caller, newest first
@router.get("", response_model=List[ReviewOut])
def my_reviews(
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    reviews = (
        db.query(Review)
        .options(selectinload(Review.product), selectinload(Review.user))
        .filter(Review.user_id == current_user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return [review_to_out(r) for r in reviews]


@router.delete("/{review_id}")
def delete_review(
    review_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    review = db.query(Review).filter(Review.id == review_id).first()
    # Someone else's review looks the same as a missing one
    if not review or review.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Review not found")

    db.delete(review)
    db.commit()

    write_log(db, user_id=current_user.id, action="REVIEW_DELETE", resource="reviews",
              ip=client_ip(request), meta={"review_id": review_id})
    return {"message": "Review deleted"}
