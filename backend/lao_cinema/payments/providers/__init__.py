"""
Built-in payment providers.
"""

from lao_cinema.payments.providers.free import FreeProvider
from lao_cinema.payments.providers.manual import ManualProvider

__all__ = ["FreeProvider", "ManualProvider"]
