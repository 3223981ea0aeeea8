"""
Capa de Aplicación - Reservas de Hotel.

Esta capa contiene los casos de uso e interfaces (puertos).
Orquesta el ciclo de vida de la reservación y define los contratos con la infraestructura.

Estructura:
- use_cases/: Coordinador del ciclo de vida y manejo de webhooks
- interfaces/: Puertos (repositorio, proveedor, caché)
- validators.py: Validación de parámetros hacia el proveedor
"""

from app.application.interfaces import CacheTier, CacheTierUnavailable, ReservationRepo, SupplierGateway

__all__ = [
    "ReservationRepo",
    "SupplierGateway",
    "CacheTier",
    "CacheTierUnavailable",
]
