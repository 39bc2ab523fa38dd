from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List

from storefront.api.deps import get_product_queries
from storefront.schemas.product import PublicProductView, ProductDetail, BestSellerView
from storefront.services.product_queries import ProductQueries

router = APIRouter(
    prefix="/catalog",
    tags=["Catalog"]
)


@router.get(
    "/products",
    response_model=List[PublicProductView],
    summary="Browse products",
    description="All products with stock available, newest first. No authentication required."
)
async def browse_products(queries: ProductQueries = Depends(get_product_queries)):
    return queries.find_all_public_products()


@router.get(
    "/best-sellers",
    response_model=List[BestSellerView],
    summary="Best sellers",
    description="In-stock products ranked by number of order lines. Products without sales are not listed."
)
async def best_sellers(
    limit: int = Query(5, ge=1, le=50, description="Maximum number of products"),
    queries: ProductQueries = Depends(get_product_queries)
):
    return queries.find_best_sellers(limit)


@router.get(
    "/products/{product_id}",
    response_model=ProductDetail,
    summary="Get product details",
    responses={404: {"description": "Product not found"}}
)
async def get_product(product_id: str, queries: ProductQueries = Depends(get_product_queries)):
    product = queries.find_product_by_id(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return product
