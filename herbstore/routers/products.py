"""
Catalog endpoints
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from sqlalchemy import or_
from typing import Optional
import logging

from herbstore.auth.auth_handler import AdminPrincipal, admin_required, full_admin_required
from herbstore.database import get_db
from herbstore.models.product import Product
from herbstore.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from herbstore.utils.error_handler import ApiError
from herbstore.utils.rate_limit import limiter
from herbstore.utils.responses import success_response, paginated_response

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise ApiError.not_found("Product not found")
    return product

@router.get("")
@limiter.limit("60/minute")
async def list_products(
    request: Request,
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search by name or description"),
    brand: Optional[str] = Query(None, description="Filter by brand"),
    category: Optional[str] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db)
):
    """Active products, paginated"""
    query = db.query(Product).filter(Product.is_active.is_(True))

    if search:
        search_term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Product.name.ilike(search_term),
                Product.description.ilike(search_term)
            )
        )
    if brand:
        query = query.filter(Product.brand == brand)
    if category:
        query = query.filter(Product.category == category)

    total = query.count()
    offset = (page - 1) * limit
    products = query.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit).all()

    return paginated_response(
        [ProductResponse.from_orm(p).dict() for p in products],
        page=page,
        limit=limit,
        total=total,
        message="Products retrieved successfully"
    )

@router.get("/{product_id}")
@limiter.limit("60/minute")
async def get_product(
    request: Request,
    product_id: int,
    db: Session = Depends(get_db)
):
    product = _get_product(db, product_id)
    if not product.is_active:
        raise ApiError.not_found("Product not found")
    return success_response(ProductResponse.from_orm(product).dict())

@router.post("", status_code=201)
@limiter.limit("20/minute")
async def create_product(
    request: Request,
    product_data: ProductCreate,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Add a product to the catalog"""
    product = Product(**product_data.dict(), is_active=True)
    db.add(product)
    db.commit()
    db.refresh(product)

    logger.info(f"Admin {admin.email} created product {product.id}")
    return success_response(ProductResponse.from_orm(product).dict(), "Product created successfully")

@router.put("/{product_id}")
@limiter.limit("20/minute")
async def update_product(
    request: Request,
    product_id: int,
    product_update: ProductUpdate,
    admin: AdminPrincipal = Depends(admin_required),
    db: Session = Depends(get_db)
):
    """Partial update; selling price may not exceed actual price"""
    product = _get_product(db, product_id)
    update_data = {k: v for k, v in product_update.dict(exclude_unset=True).items() if v is not None}
    if not update_data:
        raise ApiError.bad_request("No fields to update")

    actual_price = update_data.get("actual_price", product.actual_price)
    selling_price = update_data.get("selling_price", product.selling_price)
    if selling_price > actual_price:
        raise ApiError.bad_request("Selling price must not exceed actual price")

    for field, value in update_data.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)

    logger.info(f"Admin {admin.email} updated product {product_id}: {sorted(update_data)}")
    return success_response(ProductResponse.from_orm(product).dict(), "Product updated successfully")

@router.delete("/{product_id}")
@limiter.limit("10/minute")
async def delete_product(
    request: Request,
    product_id: int,
    admin: AdminPrincipal = Depends(full_admin_required),
    db: Session = Depends(get_db)
):
    """Deactivate a product; order items keep referencing it"""
    product = _get_product(db, product_id)
    product.is_active = False
    db.commit()

    logger.info(f"Admin {admin.email} deactivated product {product_id}")
    return success_response({"id": product_id}, "Product deleted successfully")
