from fastapi import HTTPException, status

from servit.services.exceptions import (
    EntityNotFound,
    InvalidPrice,
    PriceConflict,
    ServiceError,
)


def http_error(exc: ServiceError) -> HTTPException:
    """Translate a service exception into the matching HTTP error"""
    if isinstance(exc, EntityNotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidPrice):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, PriceConflict):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HTTPException(status_code=code, detail=str(exc))


def price_dict(record):
    if record is None:
        return None
    return {
        "id": record.id,
        "value": record.value,
        "currency": record.currency,
        "effective_from": record.effective_from,
        "effective_to": record.effective_to,
        "is_current": record.is_current,
        "vendor_id": record.vendor_id,
        "location_id": record.location_id,
    }
