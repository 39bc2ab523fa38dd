"""
JWT validator for tokens issued by the storefront auth service
"""
import jwt
import logging
from typing import Dict
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class JWTValidator:
    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def verify_token(self, token: str) -> Dict:
        """
        Verify signature and expiry.
        Returns decoded token payload if valid.
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub"], "verify_exp": True}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT verification failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials"
            )
