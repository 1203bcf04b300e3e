"""
Data access repositories.
"""

from lao_cinema.repositories.movie_repo import MovieRepository
from lao_cinema.repositories.pack_repo import PackRepository
from lao_cinema.repositories.payment_repo import PaymentTransactionRepository
from lao_cinema.repositories.pricing_repo import PromoCodeRepository
from lao_cinema.repositories.rental_repo import RentalRepository
from lao_cinema.repositories.session_repo import SessionRepository
from lao_cinema.repositories.watch_progress_repo import WatchProgressRepository

__all__ = [
    "MovieRepository",
    "PackRepository",
    "PaymentTransactionRepository",
    "PromoCodeRepository",
    "RentalRepository",
    "SessionRepository",
    "WatchProgressRepository",
]
