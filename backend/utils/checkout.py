# utils/checkout.py
"""
Cart -> order conversion.

place_order() runs the whole workflow (read cart, price it, create the
order and its lines, take stock, empty the cart) inside the caller's
session and commits once at the end. Any failure rolls the session back,
so a half-placed order never becomes visible.
"""
from typing import Dict, Iterable, Tuple
import logging

from sqlalchemy.orm import Session, joinedload

from config import settings
from models.cart import Cart, CartItem
from models.order import Order, OrderItem, ORDER_STATUSES
from models.product import Product
from utils.errors import BadRequest, Conflict, NotFound

logger = logging.getLogger(__name__)

# Legal status changes when STRICT_ORDER_TRANSITIONS is on
ORDER_TRANSITIONS = {
    "pending": {"shipped", "cancelled"},
    "shipped": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


def _lock_products(db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    # One FOR UPDATE in ascending id order, so two checkouts never wait on each other crosswise.
    # SQLite ignores the lock and serializes writers anyway.
    products = (
        db.query(Product)
        .filter(Product.id.in_(sorted(product_ids)))
        .order_by(Product.id)
        .with_for_update()
        .populate_existing()
        .all()
    )
    return {product.id: product for product in products}


def place_order(db: Session, user_id: int) -> Order:
    """Turn the user's cart into a pending order. Returns the committed Order."""
    try:
        # Locking the cart row serializes concurrent checkouts of the same user
        cart = db.query(Cart).filter(Cart.user_id == user_id).with_for_update().first()
        if not cart:
            raise BadRequest("No cart found for this user")

        lines = (
            db.query(CartItem)
            .options(joinedload(CartItem.product))
            .filter(CartItem.cart_id == cart.id)
            .order_by(CartItem.id)
            .all()
        )
        if not lines:
            raise BadRequest("Your cart is empty")

        # Prices are read once here and frozen into the order lines below
        prices: Dict[int, float] = {line.product_id: line.product.price for line in lines}
        total = round(sum(prices[line.product_id] * line.quantity for line in lines), 2)

        order = Order(user_id=user_id, status="pending", total=total)
        db.add(order)
        db.flush()

        locked = _lock_products(db, prices)
        for line in lines:
            product = locked.get(line.product_id)
            if product is None:
                raise Conflict("A product in your cart is no longer available")
            if product.stock < line.quantity:
                raise Conflict(f"Insufficient stock for {product.name}")

            db.add(OrderItem(
                order_id=order.id,
                product_id=product.id,
                quantity=line.quantity,
                price_at_purchase=prices[line.product_id],
            ))
            product.stock -= line.quantity

        db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s placed by user %s (total %.2f)", order.id, user_id, order.total)
    return order


def change_order_status(db: Session, order_id: int, new_status: str) -> Tuple[Order, str]:
    """Overwrite an order's status. Returns the order and its previous status."""
    if new_status not in ORDER_STATUSES:
        raise BadRequest("Invalid order status")

    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Order not found")

    old_status = order.status
    if (
        settings.STRICT_ORDER_TRANSITIONS
        and new_status != old_status
        and new_status not in ORDER_TRANSITIONS.get(old_status, set())
    ):
        raise BadRequest(f"Cannot change status from {old_status} to {new_status}")

    order.status = new_status
    db.commit()
    db.refresh(order)
    return order, old_status
