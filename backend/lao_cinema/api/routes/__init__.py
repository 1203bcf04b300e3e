# API routes
from lao_cinema.api.routes import health
from lao_cinema.api.routes import video_tokens
from lao_cinema.api.routes import rentals
from lao_cinema.api.routes import pricing
from lao_cinema.api.routes import purchases

__all__ = ["health", "video_tokens", "rentals", "pricing", "purchases"]
