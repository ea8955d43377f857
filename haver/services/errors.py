from __future__ import annotations


class SettlementError(Exception):
    """Base das falhas de baixa. `kind` é o código estável devolvido nos lotes."""

    kind = "settlement_error"

    def __init__(self, message: str, *, obligation_id: int | None = None):
        super().__init__(message)
        self.message = message
        self.obligation_id = obligation_id


class NotFoundError(SettlementError):
    kind = "not_found"


class InvalidStateError(SettlementError):
    kind = "invalid_state"


class AlreadySettledError(InvalidStateError):
    kind = "already_settled"


class InvalidAmountError(SettlementError):
    kind = "invalid_amount"


class OverpaymentError(InvalidAmountError):
    kind = "overpayment"


class StorageError(SettlementError):
    kind = "storage"


class ConcurrentSettlementError(StorageError):
    kind = "concurrent_update"
