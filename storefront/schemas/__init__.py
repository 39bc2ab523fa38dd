# Package exports - these allow cleaner imports like:
# from storefront.schemas import ProductCreate, ProductView
from storefront.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductView,
    PublicProductView,
    ProductDetail,
    BestSellerView,
    ProductWriteResponse,
    ProductMutationResponse,
)
from storefront.schemas.user import ProfilePictureResponse
