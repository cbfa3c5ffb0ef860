class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class InsufficientStockError(AppError):
    def __init__(self, message: str, product_id: int | None = None):
        super().__init__(message)
        self.product_id = product_id


class DependencyError(AppError):
    """Delete blocked because other rows still reference the target."""


class DuplicateError(AppError):
    pass


class AuthorizationError(AppError):
    pass


class DatabaseError(AppError):
    """Connection or statement failure reported by the persistence layer."""
