from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import AsyncSessionLocal
from app.application.use_cases.booking_lifecycle import BookingLifecycleCoordinator
from app.application.use_cases.handle_etg_webhook import HandleEtgWebhookUseCase
from app.application.use_cases.handle_payment_webhook import HandlePaymentWebhookUseCase
from app.config import Settings, get_settings
from app.infrastructure.cache.tiered_cache import build_tiered_cache
from app.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from app.infrastructure.gateways.etg_client import EtgClient, EtgCredentials
from app.infrastructure.gateways.etg_service import EtgSupplierService
from app.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from app.infrastructure.in_memory.supplier_gateway import StubSupplierGateway


async def get_session(settings: Settings = Depends(get_settings)) -> AsyncSession | None:
    if settings.use_in_memory:
        yield None
        return
    async with AsyncSessionLocal() as session:
        yield session


@lru_cache(maxsize=1)
def in_memory_bundle():
    return {
        "reservation_repo": InMemoryReservationRepo(),
        "supplier_gateway": StubSupplierGateway(),
    }


@lru_cache(maxsize=1)
def etg_supplier_service() -> EtgSupplierService:
    settings = get_settings()
    # Raises ValueError when ETG_API_KEY_ID or ETG_API_KEY is missing
    credentials = EtgCredentials.from_settings(settings)
    return EtgSupplierService(
        client=EtgClient.from_settings(settings, credentials=credentials),
        cache=build_tiered_cache(settings),
    )


def get_use_cases(
    settings: Settings = Depends(get_settings),
    session: AsyncSession | None = Depends(get_session),
):
    if settings.use_in_memory:
        bundle = in_memory_bundle()
        reservation_repo = bundle["reservation_repo"]
        supplier_gateway = bundle["supplier_gateway"]
    else:
        if not session:
            raise RuntimeError("DB session not available")
        reservation_repo = ReservationRepoSQL(session)
        supplier_gateway = etg_supplier_service()

    coordinator = BookingLifecycleCoordinator(
        reservation_repo=reservation_repo,
        supplier_gateway=supplier_gateway,
        payment_provider=settings.payment_provider_name,
        return_url=settings.booking_return_url,
    )
    return {
        "coordinator": coordinator,
        "payment_webhook": HandlePaymentWebhookUseCase(
            coordinator=coordinator,
            webhook_secret=settings.payment_webhook_secret,
        ),
        "etg_webhook": HandleEtgWebhookUseCase(
            coordinator=coordinator,
            webhook_secret=settings.etg_webhook_secret,
        ),
    }
