# Package exports - these allow cleaner imports like:
# from storefront.models import Product, ProductImage
# Used by alembic/env.py for migration autogenerate
from storefront.models.product import Product
from storefront.models.product_image import ProductImage
from storefront.models.review import Review
from storefront.models.order_item import OrderItem
from storefront.models.user_profile import UserProfile
