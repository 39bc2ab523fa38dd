from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Product name", examples=["Colombian Supremo"])
    product_type: str = Field(..., min_length=1, max_length=100, description="Category or type", examples=["coffee beans"])
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Unit price", examples=["12.50"])
    net_weight: str = Field(..., min_length=1, max_length=50, description="Net weight with unit", examples=["500g"])
    description: str = Field(..., min_length=1, description="Product description")
    characteristics: Optional[str] = Field(None, description="Free-text characteristics")
    stock: int = Field(..., ge=0, description="Units in stock", examples=[20])
    brand: Optional[str] = Field(None, max_length=100, description="Brand", examples=["Juan Valdez"])


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    product_type: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    net_weight: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1)
    characteristics: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    brand: Optional[str] = Field(None, max_length=100)


class ProductView(BaseModel):
    """Denormalized product row with its image references collapsed into a list"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    supplier_id: str
    name: str
    product_type: str
    brand: Optional[str] = None
    price: Decimal
    stock: int
    description: str
    characteristics: Optional[str] = None
    images: List[str] = Field(default_factory=list, description="Image URLs in upload order")
    created_at: Optional[datetime] = None


class PublicProductView(ProductView):
    item_type: str = "product"


class ProductDetail(ProductView):
    net_weight: str
    avg_rating: Optional[float] = Field(None, description="Average review rating, null when unrated")
    review_count: int = 0


class BestSellerView(ProductView):
    sales_count: int


class ProductWriteResponse(BaseModel):
    id: str
    name: str
    images: List[str] = Field(default_factory=list)


class ProductMutationResponse(BaseModel):
    message: str
    images_removed: int = 0
    cleanup_failures: int = 0
