"""Service layer exceptions for ServIt 360.

Exception Hierarchy:
    ServiceError (base)
    ├── EntityNotFound
    ├── InvalidPrice
    ├── PriceConflict
    ├── PriceWriteError
    └── PriceLookupError
"""


class ServiceError(Exception):
    """Base exception for all service layer errors."""

    pass


class EntityNotFound(ServiceError):
    """Raised when a referenced ingredient, recipe or menu item does not resolve."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} '{entity_id}' not found")


class InvalidPrice(ServiceError, ValueError):
    """Raised when a price value is not a finite, non-negative number."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Price must be a finite, non-negative number (got {value!r})")


class PriceConflict(ServiceError):
    """Raised when another price change for the same entity committed first.

    The caller may retry; the close-then-open sequence re-reads current state.
    """

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Price for '{entity_id}' was changed concurrently, retry the request")


class PriceWriteError(ServiceError):
    """Raised when the close-then-open batch could not be committed."""

    def __init__(self, entity_id: str, original_error: Exception = None):
        self.entity_id = entity_id
        self.original_error = original_error
        super().__init__(f"Could not record price for '{entity_id}'")


class PriceLookupError(ServiceError):
    """Raised when price records could not be read."""

    def __init__(self, entity_id: str, original_error: Exception = None):
        self.entity_id = entity_id
        self.original_error = original_error
        super().__init__(f"Could not read prices for '{entity_id}'")
