from fastapi import APIRouter, Depends, HTTPException, status, Query, Form, File, UploadFile
from pydantic import ValidationError
from typing import List, Optional
import logging

from storefront.api.deps import (
    get_app_settings,
    get_file_store,
    get_product_service,
    get_product_queries,
    store_or_reject,
)
from storefront.auth.dependencies import require_supplier
from storefront.config import Settings
from storefront.errors import TransactionFailed
from storefront.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductView,
    ProductWriteResponse,
    ProductMutationResponse,
)
from storefront.services.file_stores.base import FileStore
from storefront.services.product_queries import ProductQueries
from storefront.services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)


def _parse(model_cls, data: dict):
    try:
        return model_cls(**data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False)
        )


def _write_failed(e: TransactionFailed) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Product could not be saved ({e.operation})"
    )


@router.post(
    "",
    response_model=ProductWriteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
    description="""
    Create a product owned by the authenticated supplier.

    Sent as multipart form data. Up to 5 images (JPEG, PNG, GIF, WEBP,
    5 MB each) may be attached as `product_images`.
    """,
    responses={
        400: {"description": "Invalid image upload"},
        401: {"description": "Authentication required"},
        403: {"description": "Requires supplier account"},
        422: {"description": "Invalid product fields"}
    }
)
async def create_product(
    name: str = Form(...),
    product_type: str = Form(...),
    price: str = Form(...),
    net_weight: str = Form(...),
    description: str = Form(...),
    stock: str = Form(...),
    characteristics: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    product_images: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(require_supplier),
    settings: Settings = Depends(get_app_settings),
    file_store: FileStore = Depends(get_file_store),
    product_service: ProductService = Depends(get_product_service)
):
    """Create a product (supplier only)"""
    product_data = _parse(ProductCreate, {
        "name": name,
        "product_type": product_type,
        "price": price,
        "net_weight": net_weight,
        "description": description,
        "stock": stock,
        "characteristics": characteristics or None,
        "brand": brand or None,
    })
    stored = await store_or_reject(product_images, file_store, settings)

    try:
        product = product_service.create_product(product_data, current_user["user_id"], stored)
    except TransactionFailed as e:
        raise _write_failed(e)

    return ProductWriteResponse(
        id=product.id,
        name=product.name,
        images=[image.image_url for image in product.images]
    )


@router.get(
    "/mine",
    response_model=List[ProductView],
    summary="List the supplier's products",
    description="Products owned by the authenticated supplier, newest first. `search` filters by name, case-insensitively."
)
async def list_my_products(
    search: str = Query("", max_length=100, description="Substring to look for in the product name"),
    current_user: dict = Depends(require_supplier),
    queries: ProductQueries = Depends(get_product_queries)
):
    return queries.find_products_by_supplier(current_user["user_id"], search)


@router.put(
    "/{product_id}",
    response_model=ProductMutationResponse,
    summary="Update a product",
    description="""
    Update fields of a product owned by the authenticated supplier.

    Only the fields sent are changed; send an empty `brand` or
    `characteristics` to clear them. Attached `product_images` are appended,
    existing images are kept.
    """,
    responses={
        404: {"description": "Product not found or not owned by the caller"}
    }
)
async def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    product_type: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    net_weight: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    characteristics: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    product_images: Optional[List[UploadFile]] = File(None),
    current_user: dict = Depends(require_supplier),
    settings: Settings = Depends(get_app_settings),
    file_store: FileStore = Depends(get_file_store),
    product_service: ProductService = Depends(get_product_service)
):
    """Update a product (owner only)"""
    sent = {
        "name": name,
        "product_type": product_type,
        "price": price,
        "net_weight": net_weight,
        "description": description,
        "stock": stock,
    }
    fields = {key: value for key, value in sent.items() if value is not None}
    for key, value in (("characteristics", characteristics), ("brand", brand)):
        if value is not None:
            fields[key] = value or None
    product_data = _parse(ProductUpdate, fields)

    stored = await store_or_reject(product_images, file_store, settings)

    try:
        result = product_service.update_product_by_id(
            product_id, current_user["user_id"], product_data, stored
        )
    except TransactionFailed as e:
        raise _write_failed(e)

    if result.matched_count == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found or you do not have permission to edit it"
        )
    return ProductMutationResponse(message="Product updated")


@router.delete(
    "/{product_id}",
    response_model=ProductMutationResponse,
    summary="Delete a product",
    description="Delete a product owned by the authenticated supplier together with its images.",
    responses={
        404: {"description": "Product not found or not owned by the caller"}
    }
)
async def delete_product(
    product_id: str,
    current_user: dict = Depends(require_supplier),
    product_service: ProductService = Depends(get_product_service)
):
    """Delete a product (owner only)"""
    try:
        result = product_service.delete_product_by_id(product_id, current_user["user_id"])
    except TransactionFailed as e:
        raise _write_failed(e)

    if result.affected_rows == 0:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found or you do not have permission to delete it"
        )
    return ProductMutationResponse(
        message="Product deleted",
        images_removed=len(result.cleanup.attempted) - len(result.cleanup.failures),
        cleanup_failures=len(result.cleanup.failures)
    )
