"""Value Object StayDates - rango de fechas de estancia en el hotel."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class StayDates:
    """
    Value Object inmutable con las fechas de check-in y check-out.

    Attributes:
        check_in: Fecha de entrada.
        check_out: Fecha de salida (exclusiva).
    """

    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise ValueError(
                f"check_in debe ser anterior a check_out: {self.check_in} >= {self.check_out}"
            )

    @property
    def nights(self) -> int:
        """Número de noches de la estancia."""
        return (self.check_out - self.check_in).days

    def __str__(self) -> str:
        return f"{self.check_in.isoformat()} -> {self.check_out.isoformat()}"

    @classmethod
    def from_iso(cls, check_in: str, check_out: str) -> "StayDates":
        """Factory desde strings `YYYY-MM-DD`."""
        return cls(check_in=date.fromisoformat(check_in), check_out=date.fromisoformat(check_out))
