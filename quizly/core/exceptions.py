import logging
from functools import wraps
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and a stable code."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(AppError):
    """400 - malformed, missing or out-of-range input"""

    status_code = 400
    code = "VALIDATION_ERROR"


class UnauthorizedError(AppError):
    """401 - invalid, expired or mismatched session"""

    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    """403 - student is not on the class roster"""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str = "Database operation failed",
        original_error: Optional[BaseException] = None,
    ):
        self.original_error = original_error
        super().__init__(message)


def db_exception(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AppError:
            raise
        except IntegrityError as e:
            # mostly duplicate entries
            logger.warning(f"Integrity error in {func.__qualname__}: {e.orig}")
            raise ConflictError("Duplicate entry: already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Database error in {func.__qualname__}: {e}", exc_info=True)
            raise DatabaseError(f"Database {func.__name__} failed", e) from e

    return wrapper
