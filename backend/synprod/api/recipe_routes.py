"""
Recipe calculator routes — order-capacity scaling and PDF export.

GET  /api/recipes/catalog                         — product types + capacity units
POST /api/recipes/calculate                       — scale an unsaved (mid-edit) recipe
POST /api/recipes/{id}/scale                      — scale a stored recipe
POST /api/recipes/{id}/quantity-for-weight        — total weight → order quantity
GET  /api/recipes/{id}/export.pdf?quantity=&unit= — scaled recipe PDF

Scaling errors (unknown type/unit, negative quantity) are mapped to 400 by
the exception handlers in synprod.main.
"""
import re
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from synprod.db import get_db
from synprod.api.deps import get_current_user
from synprod.models.orm_models import User
from synprod.models.schemas import (
    CalculateRequest,
    QuantityForWeightRequest,
    QuantityForWeightResponse,
    ScaleRequest,
    ScaleResponse,
)
from synprod.services.catalogs import catalog_summary, default_capacity_unit
from synprod.services.product_service import ProductService
from synprod.services.recipe_exporter import RecipeExporter
from synprod.services.recipe_scaler import RecipeScaler

router = APIRouter(prefix="/api/recipes", tags=["Recipe Calculator"])
logger = logging.getLogger("synprod-recipe-routes")

scaler = RecipeScaler()
exporter = RecipeExporter(scaler)


def _pdf_filename(name: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_") or "recipe"
    return f"{slug}_Production_Recipe.pdf"


@router.get("/catalog")
async def get_catalog(user: User = Depends(get_current_user)) -> List[dict]:
    return catalog_summary()


@router.post("/calculate", response_model=ScaleResponse)
async def calculate(req: CalculateRequest, user: User = Depends(get_current_user)):
    unit_key = req.capacity_unit or default_capacity_unit(req.product_type).key
    result = scaler.scale(req.product_type, req.compositions, req.ingredients, req.order_quantity, unit_key)
    return ScaleResponse.from_result(result)


@router.post("/{product_id}/scale", response_model=ScaleResponse)
async def scale_product(
    product_id: int,
    req: ScaleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id)
    result = scaler.scale_recipe(product, req.order_quantity, req.capacity_unit)
    return ScaleResponse.from_result(result)


@router.post("/{product_id}/quantity-for-weight", response_model=QuantityForWeightResponse)
async def quantity_for_weight(
    product_id: int,
    req: QuantityForWeightRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id)
    unit_key = req.capacity_unit or default_capacity_unit(product.product_type).key
    quantity = scaler.total_weight_to_quantity(product.product_type, unit_key, req.total_weight)
    # echo the weight the quantity actually produces, not the raw input
    result = scaler.scale(product.product_type, [], [], quantity, unit_key)
    return QuantityForWeightResponse(
        product_type=result.product_type,
        capacity_unit=unit_key,
        total_weight=result.total_weight,
        order_quantity=quantity,
    )


@router.get("/{product_id}/export.pdf")
async def export_pdf(
    product_id: int,
    quantity: float = Query(1.0, description="Order quantity in capacity units"),
    unit: Optional[str] = Query(None, description="Capacity unit key, e.g. tubs, pouches"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id)
    pdf = exporter.export(product, quantity, unit)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{_pdf_filename(product.name)}"'},
    )
