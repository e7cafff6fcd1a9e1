from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime


# Request body for creating or editing a review
class ReviewIn(BaseModel):
    rating: int = Field(ge=1, le=5, description="Rating must be between 1 and 5")
    review_text: Optional[str] = None


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    product_id: int
    rating: int
    review_text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Public listing entry, authored by username
class ReviewListItem(BaseModel):
    id: int
    username: str
    rating: int
    review_text: Optional[str] = None
    created_at: Optional[datetime] = None


class ProductReviews(BaseModel):
    average_rating: float
    review_count: int
    reviews: List[ReviewListItem]
