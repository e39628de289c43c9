import config
from config import JWT_ALGORITHM, JWT_ACCESS_TOKEN_EXPIRE_DAYS
from utils.errors import AuthenticationError, InternalError
from .schemas import UserRole
from datetime import datetime, timedelta, timezone
import bcrypt
import jwt
import logging

logger = logging.getLogger(__name__)

class AuthHelpers:
    """Helper functions for authentication operations"""

    def _secret(self) -> str:
        if not config.JWT_SECRET_KEY:
            logger.error("JWT_SECRET_KEY is not set")
            raise InternalError("Internal server configuration error")
        return config.JWT_SECRET_KEY

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Stored hash is not a bcrypt hash
            return False

    def create_access_token(self, user_id, role: str, email: str = None, expires_delta: timedelta = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(days=JWT_ACCESS_TOKEN_EXPIRE_DAYS))
        payload = {
            "sub": str(user_id),
            "role": role,
            "email": email,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret(), algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str):
        """
        Verify JWT token locally
        Returns the subject, role and email carried by the token
        """
        try:
            payload = jwt.decode(
                token,
                self._secret(),
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_signature": True,
                    "require": ["sub", "exp"]
                }
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {str(e)}")
            raise AuthenticationError("Invalid token")

        role = payload.get("role")
        if role is not None and role not in {r.value for r in UserRole}:
            logger.warning(f"Token carries unknown role: {role}")
            raise AuthenticationError("Invalid token")

        return {
            "sub": payload["sub"],
            "role": role,
            "email": payload.get("email"),
        }

auth_helpers = AuthHelpers()
