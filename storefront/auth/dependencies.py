from fastapi import HTTPException, Request, status, Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from storefront.auth.jwt_validator import JWTValidator
import logging

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

SUPPLIER_ROLES = ["supplier", "admin"]


def get_jwt_validator(request: Request) -> JWTValidator:
    settings = request.app.state.settings
    return JWTValidator(settings.jwt_secret, settings.jwt_algorithm)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    validator: JWTValidator = Depends(get_jwt_validator)
) -> dict:
    """Dependency to extract and validate the bearer JWT"""
    if not credentials:
        logger.warning("Authentication credentials missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing"
        )

    payload = validator.verify_token(credentials.credentials)
    role = payload.get("role")
    if not role:
        logger.warning("Token missing role claim")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing role claim"
        )

    return {
        "user_id": str(payload["sub"]),
        "role": role,
        "payload": payload
    }


async def require_supplier(
    current_user: dict = Depends(get_current_user)
) -> dict:
    """Dependency to require a supplier (or admin) account"""
    if current_user.get("role") not in SUPPLIER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Requires supplier account"
        )
    return current_user
