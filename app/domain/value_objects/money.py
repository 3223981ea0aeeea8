"""Value Object Money - representa un valor monetario con su moneda."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

DEFAULT_CURRENCY = "BYN"


@dataclass(frozen=True)
class Money:
    """
    Value Object inmutable que representa un monto monetario.

    Attributes:
        amount: Monto decimal.
        currency_code: Código ISO 4217 de la moneda (ej: BYN, EUR, USD).
    """

    amount: Decimal
    currency_code: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code debe ser de 3 caracteres: {self.currency_code}")

        if not self.amount.is_finite():
            raise ValueError(f"amount debe ser finito: {self.amount}")

        if self.amount < 0:
            raise ValueError(f"amount no puede ser negativo: {self.amount}")

    def per_night(self, nights: int) -> "Money":
        """Divide el total entre las noches de la estancia."""
        if nights < 1:
            raise ValueError(f"nights debe ser >= 1: {nights}")
        value = (self.amount / nights).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return Money(amount=value, currency_code=self.currency_code)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency_code}"

    @classmethod
    def from_supplier(cls, amount: Any, currency_code: str | None) -> "Money":
        """
        Crea un Money desde un monto del proveedor (número o string).

        Raises:
            ValueError: si el monto no es numérico o no es finito (NaN, Infinity).
        """
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"Monto inválido del proveedor: {amount!r}") from exc
        if not value.is_finite():
            raise ValueError(f"Monto no finito del proveedor: {amount!r}")
        return cls(amount=value, currency_code=(currency_code or DEFAULT_CURRENCY).upper())
