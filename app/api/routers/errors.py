# app/api/routers/errors.py
from fastapi import HTTPException
from pydantic import ValidationError as PydanticValidationError

from app.domain.errors import (
    Conflict,
    DependencyFailure,
    InvalidTransition,
    NotFound,
    NumberGenerationExhausted,
    ShopError,
    ValidationError,
)

_STATUS_CODES = (
    (ValidationError, 400),
    (InvalidTransition, 400),
    (NotFound, 404),
    (Conflict, 409),
    (DependencyFailure, 502),
    (NumberGenerationExhausted, 503),
)


def to_http(error: ShopError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def schema_error_to_http(error: PydanticValidationError) -> HTTPException:
    first = error.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ()))
    return HTTPException(status_code=400, detail=f"{field}: {first.get('msg')}")
