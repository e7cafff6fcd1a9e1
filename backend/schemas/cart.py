from pydantic import BaseModel, Field
from typing import List, Optional

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: int
    quantity: int = Field(default=1, gt=0)

# Request schema for updating a line; zero or negative removes it
class CartUpdateItem(BaseModel):
    product_id: int
    quantity: int

# Request schema for removing a line
class CartRemoveItem(BaseModel):
    product_id: int

# Response schema for a single cart line item
class CartItemOut(BaseModel):
    product_id: int
    name: str
    price: float
    quantity: int
    total_price: float

# Response schema for the entire cart
class CartOut(BaseModel):
    msg: Optional[str] = None
    cart_id: int
    items: List[CartItemOut]
    total: float
