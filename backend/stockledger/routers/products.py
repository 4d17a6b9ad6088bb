"""
Products Router — Thin Controller
"""
from fastapi import APIRouter, Depends, Query

from stockledger.dependencies import get_product_service
from stockledger.schemas.product import ProductCreate, ProductResponse, ProductListResponse
from stockledger.services.product_service import ProductService
from stockledger.services.stock_projection import StockThresholds

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(
    payload: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    data = payload.model_dump(exclude={"stock"})
    return service.create_product(data, StockThresholds(**payload.stock.model_dump()))


@router.get("", response_model=ProductListResponse)
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    service: ProductService = Depends(get_product_service),
):
    items, total, total_pages = service.list_products(page=page, page_size=page_size)
    return ProductListResponse(items=items, total=total, page=page, page_size=page_size, total_pages=total_pages)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return service.get_product(product_id)
