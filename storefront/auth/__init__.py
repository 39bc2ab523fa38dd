# Package exports - these allow cleaner imports like:
# from storefront.auth import get_current_user, require_supplier
from storefront.auth.jwt_validator import JWTValidator
from storefront.auth.dependencies import get_current_user, require_supplier
