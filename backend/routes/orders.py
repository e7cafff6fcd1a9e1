# backend/routes/orders.py
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session, joinedload
import logging

from database import get_db
from models.order import Order, OrderItem
from schemas.common import Message
from schemas.order import (
    OrderDetail, AdminOrderDetail, OrderItemOut, OrderPlaced,
    OrderStatusPatch, OrderStatusUpdated, OrderUser,
)
from schemas.user import TokenData
from utils.audit import write_log, client_ip
from utils.checkout import place_order, change_order_status
from utils.errors import ShopError, NotFound
from utils.tokenJWT import get_current_user, require_admin

router = APIRouter(prefix="/api/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

def _orders_query(db: Session):
    return db.query(Order).options(
        joinedload(Order.items).joinedload(OrderItem.product)
    ).order_by(Order.created_at.desc(), Order.id.desc())

def _items_out(order: Order) -> List[OrderItemOut]:
    return [
        OrderItemOut(
            product_id=it.product_id,
            name=it.product.name if it.product else "Deleted product",
            quantity=it.quantity,
            price_at_purchase=it.price_at_purchase,
        )
        for it in order.items
    ]

# Map Order model to the history shape
def _order_to_out(order: Order) -> OrderDetail:
    return OrderDetail(
        order_id=order.id,
        total=round(order.total, 2),
        status=order.status,
        created_at=order.created_at,
        items=_items_out(order),
    )

# Place an order from the caller's cart
@router.post("/place", response_model=OrderPlaced, status_code=status.HTTP_201_CREATED)
def place(
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    try:
        order = place_order(db, current_user.id)
    except ShopError as e:
        logger.warning("Order placement rejected for user %s: %s", current_user.id, e.message)
        write_log(db, user_id=current_user.id, action="ORDER_PLACE", resource="orders", status="FAIL",
                  ip=client_ip(request), meta={"reason": e.message})
        raise

    write_log(db, user_id=current_user.id, action="ORDER_PLACE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "total": order.total})
    return {"msg": "Order placed successfully", "order_id": order.id}


# Order history of the logged-in user, newest first
@router.get("/history", response_model=List[OrderDetail])
def order_history(
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    orders = _orders_query(db).filter(Order.user_id == current_user.id).all()
    if not orders:
        raise NotFound("No orders found for this user")
    return [_order_to_out(o) for o in orders]


# All orders with their owners (Admin only)
@router.get("/all", response_model=List[AdminOrderDetail])
def all_orders(
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    orders = _orders_query(db).options(joinedload(Order.user)).all()
    return [
        AdminOrderDetail(
            **_order_to_out(o).model_dump(),
            user=OrderUser(username=o.user.username, email=o.user.email),
        )
        for o in orders
    ]


# Overwrite order status (Admin only)
@router.put("/update-status/{order_id}", response_model=OrderStatusUpdated)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    order, old_status = change_order_status(db, order_id, payload.status)

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "old": old_status, "new": order.status})
    return {"msg": "Order status updated successfully", "order": order}


# Delete an order and its lines; stock is not restored (Admin only)
@router.delete("/delete/{order_id}", response_model=Message)
def delete_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Order not found")

    db.delete(order)
    db.commit()

    write_log(db, user_id=current_user.id, action="ORDER_DELETE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order_id})
    return {"msg": "Order deleted successfully"}
