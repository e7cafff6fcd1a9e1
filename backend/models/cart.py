# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Represents the user's shopping cart (one per user)
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id"
    )


# Represents a single line (product + quantity) within a cart
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False, default=1)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        # One line per product in a cart; concurrent adds race on this constraint
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )
