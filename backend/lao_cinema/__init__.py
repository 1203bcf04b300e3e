"""
Lao Cinema access core.

Rental-gated video access: identity resolution, rentals, pricing and
short-lived video tokens.
"""

__version__ = "1.0.0"
