# backend/routes/carts.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
import logging

from database import get_db
from models.cart import Cart, CartItem
from models.product import Product
from schemas.cart import CartAddItem, CartUpdateItem, CartRemoveItem, CartOut, CartItemOut
from schemas.common import Message
from schemas.user import TokenData
from utils.audit import write_log, client_ip
from utils.errors import NotFound
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/carts", tags=["Cart"])
logger = logging.getLogger(__name__)

def _find_cart(db: Session, user_id: int) -> Cart:
    return db.query(Cart).filter(Cart.user_id == user_id).first()

def _require_cart(db: Session, user_id: int) -> Cart:
    cart = _find_cart(db, user_id)
    if not cart:
        raise NotFound("No cart found for this user")
    return cart

def _get_or_create_cart(db: Session, user_id: int) -> Cart:
    # Retrieve the user's cart or create it on first use
    cart = _find_cart(db, user_id)
    if cart:
        return cart

    cart = Cart(user_id=user_id)
    db.add(cart)
    try:
        db.commit()
    except IntegrityError:
        # Race condition: a parallel request created the cart first
        db.rollback()
        cart = _find_cart(db, user_id)
        if cart is None:
            raise
        return cart
    db.refresh(cart)
    return cart

def _find_line(db: Session, cart_id: int, product_id: int) -> CartItem:
    return db.query(CartItem).filter(
        CartItem.cart_id == cart_id, CartItem.product_id == product_id
    ).first()

def _cart_to_out(db: Session, cart: Cart) -> CartOut:
    lines = (
        db.query(CartItem)
        .options(joinedload(CartItem.product))
        .filter(CartItem.cart_id == cart.id)
        .order_by(CartItem.id)
        .all()
    )

    items_out = []
    total = 0.0
    for it in lines:
        line_total = it.product.price * it.quantity
        total += line_total
        items_out.append(CartItemOut(
            product_id=it.product_id,
            name=it.product.name,
            price=it.product.price,
            quantity=it.quantity,
            total_price=round(line_total, 2),
        ))

    msg = None if items_out else "Your cart is empty"
    return CartOut(msg=msg, cart_id=cart.id, items=items_out, total=round(total, 2))

@router.post("/add", response_model=Message, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise NotFound("Product not found")

    cart = _get_or_create_cart(db, current_user.id)

    item = _find_line(db, cart.id, payload.product_id)
    if item:
        item.quantity = CartItem.quantity + payload.quantity
        db.commit()
    else:
        db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=payload.quantity))
        try:
            db.commit()
        except IntegrityError:
            # Another request inserted the same line meanwhile; add on top of it
            db.rollback()
            item = _find_line(db, cart.id, payload.product_id)
            if item is None:
                raise
            item.quantity = CartItem.quantity + payload.quantity
            db.commit()

    write_log(
        db, user_id=current_user.id, action="CART_ADD", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"product_id": product.id, "quantity": payload.quantity},
    )
    return {"msg": "Product added to cart"}

@router.get("", response_model=CartOut, response_model_exclude_none=True)
def get_cart(
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    cart = _require_cart(db, current_user.id)
    return _cart_to_out(db, cart)

@router.put("/update", response_model=Message)
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    cart = _require_cart(db, current_user.id)

    item = _find_line(db, cart.id, payload.product_id)
    if not item:
        raise NotFound("Product not found in cart")

    # Zero or negative quantity means "take it out"
    if payload.quantity <= 0:
        db.delete(item)
        db.commit()
        msg = "Product removed from cart"
    else:
        item.quantity = payload.quantity
        db.commit()
        msg = "Product quantity updated"

    write_log(
        db, user_id=current_user.id, action="CART_UPDATE", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"product_id": payload.product_id, "quantity": payload.quantity},
    )
    return {"msg": msg}

@router.delete("/remove", response_model=Message)
def remove_cart_item(
    payload: CartRemoveItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    cart = _require_cart(db, current_user.id)

    item = _find_line(db, cart.id, payload.product_id)
    if not item:
        raise NotFound("Product not found in cart")

    db.delete(item)
    db.commit()

    write_log(
        db, user_id=current_user.id, action="CART_REMOVE", resource="cart", status="SUCCESS",
        ip=client_ip(request), meta={"product_id": payload.product_id},
    )
    return {"msg": "Product removed from cart"}
