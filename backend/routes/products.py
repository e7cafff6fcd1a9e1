# backend/routes/products.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from schemas import product as product_schemas
from schemas.common import Message
from schemas.user import TokenData
from utils.audit import write_log, client_ip
from utils.errors import NotFound
from utils.tokenJWT import require_admin

router = APIRouter(prefix="/api/products", tags=["Products"])


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound("Product not found")
    return product


# =========================
# CATALOG (public)
# =========================
@router.get("", response_model=List[product_schemas.ProductOut])
def list_products(
    category: Optional[str] = Query(None, description="Exact category name"),
    db: Session = Depends(get_db),
):
    query = db.query(Product)
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.id.asc()).all()


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    rows = (
        db.query(Product.category)
        .distinct()
        .filter(Product.category != None, Product.category != "")  # noqa: E711
        .order_by(Product.category)
        .all()
    )
    return [r[0] for r in rows]


@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


# =========================
# ADMIN
# =========================
@router.post("", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    new_product = Product(**payload.model_dump())
    db.add(new_product)
    db.commit()
    db.refresh(new_product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": new_product.id, "name": new_product.name}
    )
    return new_product


# Full replace: every field is taken from the payload
@router.put("/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    updated_data: product_schemas.ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    product = _get_product_or_404(db, product_id)

    for key, value in updated_data.model_dump().items():
        setattr(product, key, value)

    db.commit()
    db.refresh(product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id}
    )
    return product


@router.delete("/{product_id}", response_model=Message)
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_admin),
):
    product = _get_product_or_404(db, product_id)

    # Cart lines and reviews go with it (FK cascade); order lines keep their frozen price
    db.delete(product)
    db.commit()

    write_log(
        db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product_id}
    )
    return {"msg": "Product deleted"}
