from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime


# Output schema for an individual order line, price frozen at purchase
class OrderItemOut(BaseModel):
    product_id: Optional[int] = None
    name: str
    quantity: int
    price_at_purchase: float


# Owner details attached to orders in the admin listing
class OrderUser(BaseModel):
    username: str
    email: str


# Output schema representing the full order details
class OrderDetail(BaseModel):
    order_id: int
    total: float
    status: str
    created_at: Optional[datetime] = None
    items: List[OrderItemOut]


class AdminOrderDetail(OrderDetail):
    user: OrderUser


class OrderPlaced(BaseModel):
    msg: str
    order_id: int


class OrderOut(BaseModel):
    id: int
    user_id: int
    total: float
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class OrderStatusUpdated(BaseModel):
    msg: str
    order: OrderOut


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: str
