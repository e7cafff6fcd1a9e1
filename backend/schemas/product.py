# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Schema for creating a product
class ProductCreate(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: int = Field(default=0, ge=0)
    category: Optional[str] = None


# Schema for PUT requests - a full replace, so every field must be sent
class ProductUpdate(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str]
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: int = Field(ge=0)
    category: Optional[str]


# Full product representation including ID
class ProductOut(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    category: Optional[str] = None
