from models.users import User
from models.product import Product
from models.cart import Cart, CartItem
from models.order import Order, OrderItem
from models.review import Review
from models.log import Log

__all__ = ["User", "Product", "Cart", "CartItem", "Order", "OrderItem", "Review", "Log"]
