"""
Service factories used as FastAPI dependencies.

Routes depend on these rather than constructing services so tests can
swap them through ``app.dependency_overrides``.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from lao_cinema.config.settings import AccessConfig, get_access_config
from lao_cinema.database.session import get_db_session
from lao_cinema.payments.registry import PaymentProviderRegistry, get_payment_registry
from lao_cinema.services.access_resolver import AccessResolver
from lao_cinema.services.pricing_resolver import PricingResolver
from lao_cinema.services.purchase_service import PurchaseService
from lao_cinema.services.rental_service import RentalService
from lao_cinema.services.video_token_service import VideoTokenService, get_video_token_service

logger = logging.getLogger(__name__)


def get_access_resolver(db: Session = Depends(get_db_session)) -> AccessResolver:
    return AccessResolver(db)


def get_rental_service(
    db: Session = Depends(get_db_session),
    config: AccessConfig = Depends(get_access_config),
) -> RentalService:
    return RentalService(db, config=config)


def get_pricing_resolver(db: Session = Depends(get_db_session)) -> PricingResolver:
    return PricingResolver(db)


def get_token_service() -> VideoTokenService:
    """Video token service; a missing secret surfaces as a 500 problem."""
    return get_video_token_service()


def get_purchase_service(
    db: Session = Depends(get_db_session),
    config: AccessConfig = Depends(get_access_config),
    registry: PaymentProviderRegistry = Depends(get_payment_registry),
) -> PurchaseService:
    return PurchaseService(db, registry=registry, config=config)
