"""
Product (recipe) management routes.

Reads are open to every authenticated user; create/update need MANAGER or
ADMIN; delete needs ADMIN. Ownership checks live in ProductService.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from synprod.db import get_db
from synprod.api.deps import get_current_user, require_admin, require_manager
from synprod.models.orm_models import User
from synprod.models.schemas import FilterOptionsResponse, ProductRequest, ProductResponse
from synprod.services.catalogs import ProductType
from synprod.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["Products"])
logger = logging.getLogger("synprod-product-routes")


@router.get("", response_model=List[ProductResponse])
async def list_products(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    products = await ProductService(db).list_products()
    return [ProductResponse.from_product(p) for p in products]


@router.get("/search", response_model=List[ProductResponse])
async def search_products(
    name: Optional[str] = None,
    description: Optional[str] = None,
    component_name: Optional[str] = None,
    ingredient_name: Optional[str] = None,
    product_type: Optional[ProductType] = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Case-insensitive substring search; every supplied filter must match."""
    products = await ProductService(db).search_products(
        name=name,
        description=description,
        component_name=component_name,
        ingredient_name=ingredient_name,
        product_type=product_type,
    )
    return [ProductResponse.from_product(p) for p in products]


@router.get("/filter-options", response_model=FilterOptionsResponse)
async def filter_options(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).filter_options()


@router.get("/my-products", response_model=List[ProductResponse])
async def my_products(
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    products = await ProductService(db).products_by_user(user)
    return [ProductResponse.from_product(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id)
    return ProductResponse.from_product(product)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    req: ProductRequest,
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).create_product(req, user)
    return ProductResponse.from_product(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    req: ProductRequest,
    user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).update_product(product_id, req, user)
    return ProductResponse.from_product(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await ProductService(db).delete_product(product_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
