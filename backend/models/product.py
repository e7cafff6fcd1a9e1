# backend/models/product.py
from sqlalchemy import Column, Integer, String, Float, CheckConstraint
from database import Base

# Product
# A single catalog entry. Price and stock are plain columns; the price
# is copied into order lines at purchase time, so changing it here
# never rewrites past orders.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String)
    category = Column(String, index=True)

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
