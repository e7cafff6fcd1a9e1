# backend/routes/reviews.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.product import Product
from models.review import Review
from schemas.common import Message
from schemas.review import ReviewIn, ReviewOut, ReviewListItem, ProductReviews
from schemas.user import TokenData
from utils.audit import write_log, client_ip
from utils.errors import Conflict, Forbidden, NotFound
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])

# Reviews are looked up together with their owner, so "missing" and
# "someone else's" produce the same 403.
def _own_review(db: Session, review_id: int, user_id: int):
    return db.query(Review).filter(Review.id == review_id, Review.user_id == user_id).first()

def _find_review(db: Session, user_id: int, product_id: int):
    return db.query(Review).filter(Review.user_id == user_id, Review.product_id == product_id).first()

@router.post("/{product_id}", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def add_review(
    product_id: int,
    payload: ReviewIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    if not db.query(Product.id).filter(Product.id == product_id).first():
        raise NotFound("Product not found")

    if _find_review(db, current_user.id, product_id):
        raise Conflict("You have already reviewed this product")

    review = Review(
        user_id=current_user.id,
        product_id=product_id,
        rating=payload.rating,
        review_text=payload.review_text,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("You have already reviewed this product")
    db.refresh(review)

    write_log(db, user_id=current_user.id, action="REVIEW_CREATE", resource="reviews", status="SUCCESS",
              ip=client_ip(request), meta={"review_id": review.id, "product_id": product_id})
    return review

# Public: reviews of a product plus the average rating (0 when unrated)
@router.get("/{product_id}", response_model=ProductReviews)
def product_reviews(product_id: int, db: Session = Depends(get_db)):
    reviews = (
        db.query(Review)
        .options(joinedload(Review.user))
        .filter(Review.product_id == product_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    count, avg = db.query(func.count(Review.id), func.avg(Review.rating)).filter(
        Review.product_id == product_id
    ).one()

    return ProductReviews(
        average_rating=round(float(avg), 1) if avg is not None else 0,
        review_count=count,
        reviews=[
            ReviewListItem(
                id=r.id,
                username=r.user.username,
                rating=r.rating,
                review_text=r.review_text,
                created_at=r.created_at,
            )
            for r in reviews
        ],
    )

@router.put("/{review_id}", response_model=ReviewOut)
def edit_review(
    review_id: int,
    payload: ReviewIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    review = _own_review(db, review_id, current_user.id)
    if not review:
        raise Forbidden("You are not authorized to edit this review")

    review.rating = payload.rating
    review.review_text = payload.review_text
    review.updated_at = func.now()
    db.commit()
    db.refresh(review)

    write_log(db, user_id=current_user.id, action="REVIEW_UPDATE", resource="reviews", status="SUCCESS",
              ip=client_ip(request), meta={"review_id": review.id})
    return review

@router.delete("/{review_id}", response_model=Message)
def delete_review(
    review_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    review = _own_review(db, review_id, current_user.id)
    if not review:
        raise Forbidden("You are not authorized to delete this review")

    db.delete(review)
    db.commit()

    write_log(db, user_id=current_user.id, action="REVIEW_DELETE", resource="reviews", status="SUCCESS",
              ip=client_ip(request), meta={"review_id": review_id})
    return {"msg": "Review deleted successfully"}
