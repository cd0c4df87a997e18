from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, func, and_
from typing import Optional
from catalog.database import get_db
from catalog.models.product import Product
from catalog.schemas import ProductWrite, ProductResponse, ProductListResponse, UniqueCheckResponse
from catalog.services.codegen import CREATE, UPDATE, generate_all
from catalog.services.maintenance import duplicate_product
from catalog.services.persistence import apply_payload, cleared_fields, product_to_payload
from catalog.services.publish_guard import pre_publish_guard
from catalog.utils.storefront_sync import notify_storefront
import logging
import math

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

UNIQUE_FIELDS = {"product_code": Product.product_code, "barcode": Product.barcode}


def to_response(product: Product) -> ProductResponse:
    return ProductResponse.model_validate(product_to_payload(product))


def commit_or_conflict(db: Session):
    """
    Commit, turning a unique identifier collision into a 409.
    Two writers can race for the same code; the caller may simply retry.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"[products] Identifier collision on write: {e.orig}")
        raise HTTPException(
            status_code=409,
            detail="A product with the same product_code, barcode or uuid already exists; retry the write",
        )


@router.get("", response_model=ProductListResponse)
def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    product_code: Optional[str] = Query(None, description="Filter by product code prefix"),
    name: Optional[str] = Query(None, description="Filter by name (partial match)"),
    status: Optional[str] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db)
):
    """List products with pagination and filtering."""
    conditions = []

    if product_code:
        conditions.append(Product.product_code.startswith(product_code.upper(), autoescape=True))
    if name:
        conditions.append(Product.name.ilike(f"%{name}%"))
    if status:
        conditions.append(Product.status == status)

    query = select(Product)
    count_query = select(func.count()).select_from(Product)
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    total = db.execute(count_query).scalar()

    offset = (page - 1) * page_size
    products = db.execute(
        query.order_by(Product.id.desc()).offset(offset).limit(page_size)
    ).scalars().all()

    total_pages = math.ceil(total / page_size) if total > 0 else 0

    return ProductListResponse(
        items=[to_response(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get("/check-unique", response_model=UniqueCheckResponse)
def check_unique(
    field: str = Query(..., description="product_code or barcode"),
    value: str = Query(..., min_length=1),
    exclude_id: Optional[int] = Query(None, description="Product being edited"),
    db: Session = Depends(get_db)
):
    """Live duplicate check for hand-entered identifiers."""
    column = UNIQUE_FIELDS.get(field)
    if column is None:
        raise HTTPException(status_code=400, detail=f"field must be one of {sorted(UNIQUE_FIELDS)}")

    query = select(func.count()).select_from(Product).where(column == value)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)

    return UniqueCheckResponse(field=field, value=value, unique=db.execute(query).scalar() == 0)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    """Get a single product by ID."""
    product = db.get(Product, product_id)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    return to_response(product)


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(payload: ProductWrite, db: Session = Depends(get_db)):
    """Create a product, generating every identifier it does not carry yet."""
    data = generate_all(payload.model_dump(exclude_unset=True), CREATE, session=db)
    if not data.get("name"):
        raise HTTPException(status_code=400, detail="Product name is required")
    pre_publish_guard(data)

    product = apply_payload(db, Product(), data)
    db.add(product)
    commit_or_conflict(db)
    db.refresh(product)

    notify_storefront(product.id, product.slug)

    return to_response(product)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, payload: ProductWrite, db: Session = Depends(get_db)):
    """
    Update a product. Missing identifiers are filled in; existing ones and
    stored variants are left as they are.
    """
    product = db.get(Product, product_id)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    changes = payload.model_dump(exclude_unset=True)
    data = generate_all({**product_to_payload(product), **changes}, UPDATE, session=db)
    data.update(cleared_fields(changes, data))
    # Only a write that publishes is checked for completeness
    if "publishedAt" in changes:
        pre_publish_guard(data)

    apply_payload(db, product, data)
    commit_or_conflict(db)
    db.refresh(product)

    notify_storefront(product.id, product.slug)

    return to_response(product)


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Delete a single product."""
    product = db.get(Product, product_id)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    db.delete(product)
    db.commit()

    return None


@router.post("/{product_id}/duplicate", response_model=ProductResponse, status_code=201)
def duplicate(product_id: int, db: Session = Depends(get_db)):
    """Copy a product as an unpublished draft with freshly generated identifiers."""
    try:
        product = duplicate_product(db, product_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Product not found")

    commit_or_conflict(db)
    db.refresh(product)

    return to_response(product)
