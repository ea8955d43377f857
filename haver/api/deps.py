from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from haver.infra.db import get_db
from haver.services.errors import (
    InvalidAmountError,
    InvalidStateError,
    NotFoundError,
    SettlementError,
    StorageError,
)

DBSession = Depends(get_db)

_STATUS_BY_ERROR: list[tuple[type[SettlementError], int]] = [
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (InvalidAmountError, 400),
    (StorageError, 503),
]


def http_error(e: SettlementError) -> HTTPException:
    for exc_type, status_code in _STATUS_BY_ERROR:
        if isinstance(e, exc_type):
            return HTTPException(status_code=status_code, detail={"error": e.message, "kind": e.kind})
    return HTTPException(status_code=400, detail={"error": e.message, "kind": e.kind})
