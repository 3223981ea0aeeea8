"""Excepciones de dominio para el sistema de reservaciones de hotel."""

from typing import Any, Iterable

from app.domain.value_objects.rate_limit import RateLimitSnapshot


class DomainError(Exception):
    """Clase base para todos los errores de dominio."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Errores de Reservación ===


class ReservationNotFoundError(DomainError):
    """La reservación no existe."""

    def __init__(self, reservation_id: str):
        super().__init__(
            message=f"Reservación no encontrada: {reservation_id}",
            code="RESERVATION_NOT_FOUND",
        )
        self.reservation_id = reservation_id


class InvalidBookingTransitionError(DomainError):
    """El estado de booking no permite la transición solicitada."""

    def __init__(self, reservation_id: str | None, current_status: str, target_status: str):
        super().__init__(
            message=f"Transición inválida para {reservation_id}: "
            f"'{current_status}' -> '{target_status}'",
            code="INVALID_BOOKING_TRANSITION",
        )
        self.reservation_id = reservation_id
        self.current_status = current_status
        self.target_status = target_status


class OptimisticLockError(DomainError):
    """Conflicto de concurrencia al actualizar la reservación."""

    def __init__(self, reservation_id: str, expected_version: int, actual_version: int | None):
        super().__init__(
            message=f"Conflicto de concurrencia en reservación {reservation_id}: "
            f"versión esperada {expected_version}, versión actual {actual_version}",
            code="OPTIMISTIC_LOCK_ERROR",
        )
        self.reservation_id = reservation_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class NoRatesAvailableError(DomainError):
    """El proveedor no devolvió tarifas para la búsqueda."""

    def __init__(self, message: str = "No rates available"):
        super().__init__(message=message, code="NO_RATES_AVAILABLE")


# === Errores de Validación ===


class ValidationError(DomainError):
    """Error de validación de parámetros antes de llamar al proveedor."""

    def __init__(self, fields: Iterable[str], message: str):
        self.fields = sorted(set(fields))
        super().__init__(
            message=f"Validación fallida en {', '.join(self.fields) or 'payload'}: {message}",
            code="VALIDATION_ERROR",
        )


# === Errores del Supplier ===


class SupplierError(DomainError):
    """
    Error base de comunicación con el proveedor.

    Conserva el status HTTP, el payload crudo y el snapshot de rate limit
    para diagnóstico. `retryable` indica si el cliente puede reintentar.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        code: str | None = None,
        http_status: int | None = None,
        payload: Any = None,
        rate_limit: RateLimitSnapshot | None = None,
        capability: str | None = None,
    ):
        super().__init__(message=message, code=code)
        self.http_status = http_status
        self.payload = payload
        self.rate_limit = rate_limit or RateLimitSnapshot.empty()
        self.capability = capability

    def with_capability(self, capability: str) -> "SupplierError":
        """Adjunta la capacidad del proveedor que falló, sin reinterpretar el error."""
        if self.capability is None:
            self.capability = capability
        return self


class SupplierTimeoutError(SupplierError):
    """La llamada excedió su deadline."""

    retryable = True

    def __init__(self, timeout_seconds: float, **kwargs: Any):
        super().__init__(
            message=f"Timeout de {timeout_seconds}s en comunicación con el proveedor",
            code="SUPPLIER_TIMEOUT",
            **kwargs,
        )
        self.timeout_seconds = timeout_seconds


class RateLimitedError(SupplierError):
    """El proveedor respondió 429."""

    retryable = True

    def __init__(self, **kwargs: Any):
        super().__init__(message="Supplier rate limit exceeded", code="RATE_LIMITED", **kwargs)


class TransientServerError(SupplierError):
    """El proveedor respondió 5xx."""

    retryable = True

    def __init__(self, http_status: int, **kwargs: Any):
        super().__init__(
            message=f"Supplier responded with server error {http_status}",
            code="TRANSIENT_SERVER_ERROR",
            http_status=http_status,
            **kwargs,
        )


class PermanentServerError(SupplierError):
    """El proveedor respondió 4xx (distinto de 429); reintentar no sirve."""

    def __init__(self, http_status: int, **kwargs: Any):
        super().__init__(
            message=f"Supplier rejected the request with status {http_status}",
            code="PERMANENT_SERVER_ERROR",
            http_status=http_status,
            **kwargs,
        )


class InvalidResponseError(SupplierError):
    """Status exitoso pero cuerpo inutilizable (no es JSON o falta el envelope `data`)."""

    def __init__(self, message: str = "Invalid response from supplier", raw: Any = None, **kwargs: Any):
        super().__init__(message=message, code="INVALID_RESPONSE", payload=raw, **kwargs)
        self.raw = raw


class SupplierNetworkError(SupplierError):
    """Falla a nivel de conexión (DNS, conexión rechazada, reset)."""

    retryable = True

    def __init__(self, message: str = "Network error when calling supplier", **kwargs: Any):
        super().__init__(message=message, code="SUPPLIER_NETWORK_ERROR", **kwargs)
