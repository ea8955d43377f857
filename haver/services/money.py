from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from haver.services.errors import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(v: Decimal) -> Decimal:
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value) -> Decimal:
    """Converte o valor recebido (str/int/float/Decimal) para centavos."""
    if value is None or isinstance(value, bool):
        raise InvalidAmountError("Valor inválido.")
    try:
        # float passa por str pra não carregar lixo binário (0.1 -> 0.1000000000000000055...)
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError("Valor inválido.")
    if not amount.is_finite():
        raise InvalidAmountError("Valor inválido.")
    return quantize_money(amount)


def positive_money(value) -> Decimal:
    amount = to_money(value)
    if amount <= 0:
        raise InvalidAmountError("Valor deve ser maior que zero.")
    return amount
