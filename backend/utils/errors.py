"""
Domain error taxonomy

Every error is an HTTPException so route handlers can keep re-raising them
with `except HTTPException: raise` while anything unexpected becomes an
InternalError.
"""
from fastapi import HTTPException, status
from typing import Iterable, Optional


class ValidationError(HTTPException):
    """Missing or malformed input that passed schema validation"""

    def __init__(self, detail: str, field: Optional[str] = None):
        if field:
            detail = f"{field}: {detail}"
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AuthenticationError(HTTPException):
    """Missing, invalid or expired token"""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class AuthorizationError(HTTPException):
    """Authenticated, but the role is not allowed on this route"""

    def __init__(self, required_roles: Iterable[str] = (), detail: Optional[str] = None):
        if detail is None:
            detail = f"Access denied. Required role: {' or '.join(required_roles)}"
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    """Entity absent or not owned by the caller; both look the same"""

    def __init__(self, entity: str = "Resource"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


class ConflictError(HTTPException):
    """Duplicate data or a write that the current state does not allow"""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidStateError(ConflictError):
    """A lifecycle transition attempted from the wrong status"""

    def __init__(self, entity: str, current_status: str, expected: Iterable[str]):
        self.current_status = current_status
        super().__init__(
            f"{entity} is in '{current_status}' status; "
            f"expected {' or '.join(repr(s) for s in expected)}"
        )


class InternalError(HTTPException):
    """Storage or connectivity failure; the cause is logged, not returned"""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
