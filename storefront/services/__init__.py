# Package exports - these allow cleaner imports like:
# from storefront.services import ProductService, ProductQueries
from storefront.services.compensation import delete_files
from storefront.services.product_service import ProductService, UpdateResult, DeleteResult
from storefront.services.product_queries import ProductQueries
from storefront.services.uploads import store_uploads
from storefront.services.profile_picture_service import ProfilePictureService, PictureResult
