"""place_order() as a single unit of work."""

import pytest
from sqlalchemy import event

from models.cart import Cart, CartItem
from models.order import Order, OrderItem
from utils.checkout import place_order, change_order_status
from utils.errors import BadRequest, Conflict, NotFound


@pytest.fixture
def cart(db, user):
    cart = Cart(user_id=user.id)
    db.add(cart)
    db.commit()
    return cart


def _line(db, cart, product, quantity):
    db.add(CartItem(cart_id=cart.id, product_id=product.id, quantity=quantity))
    db.commit()


def test_place_order_returns_committed_order(db, user, cart, product_a, product_b):
    _line(db, cart, product_a, 2)
    _line(db, cart, product_b, 1)

    order = place_order(db, user.id)

    assert order.id is not None
    assert order.total == 25.0
    assert len(order.items) == 2
    assert product_a.stock == 8


def test_lines_added_in_reverse_id_order(db, user, cart, product_a, product_b):
    _line(db, cart, product_b, 2)
    _line(db, cart, product_a, 1)

    order = place_order(db, user.id)

    assert [(i.product_id, i.quantity, i.price_at_purchase) for i in order.items] == [
        (product_b.id, 2, 5.0),
        (product_a.id, 1, 10.0),
    ]
    assert order.total == 20.0
    assert (product_a.stock, product_b.stock) == (9, 3)


def test_products_are_locked_in_one_ascending_query(db, user, cart, product_a, product_b):
    _line(db, cart, product_b, 1)
    _line(db, cart, product_a, 1)
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append((statement, parameters))

    engine = db.get_bind()
    event.listen(engine, "before_cursor_execute", record)
    try:
        place_order(db, user.id)
    finally:
        event.remove(engine, "before_cursor_execute", record)

    product_reads = [
        (sql, params) for sql, params in statements
        if "FROM products" in sql and "ORDER BY products.id" in sql
    ]
    assert len(product_reads) == 1
    assert list(product_reads[0][1]) == [product_a.id, product_b.id]


def test_failure_midway_rolls_everything_back(db, user, cart, product_a, product_b):
    # First line fits, second exceeds stock: nothing of the first may stick
    _line(db, cart, product_a, 2)
    _line(db, cart, product_b, 50)

    with pytest.raises(Conflict):
        place_order(db, user.id)

    db.expire_all()
    assert product_a.stock == 10
    assert product_b.stock == 5
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0
    assert db.query(CartItem).filter(CartItem.cart_id == cart.id).count() == 2


def test_missing_and_empty_cart(db, user, other_user, cart):
    with pytest.raises(BadRequest, match="No cart"):
        place_order(db, other_user.id)
    with pytest.raises(BadRequest, match="empty"):
        place_order(db, user.id)


def test_change_order_status_validates_before_lookup(db):
    with pytest.raises(BadRequest):
        change_order_status(db, 9999, "teleported")
    with pytest.raises(NotFound):
        change_order_status(db, 9999, "shipped")
