"""
Business logic services.
"""

from lao_cinema.services.access_resolver import AccessDecision, AccessResolver
from lao_cinema.services.pricing_resolver import PricingResolver
from lao_cinema.services.purchase_service import PurchaseService
from lao_cinema.services.rental_service import RentalService
from lao_cinema.services.video_token_service import VideoTokenService

__all__ = [
    "AccessDecision",
    "AccessResolver",
    "PricingResolver",
    "PurchaseService",
    "RentalService",
    "VideoTokenService",
]
