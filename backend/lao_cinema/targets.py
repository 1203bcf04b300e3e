"""
Rental targets.

A rental is for exactly one movie or exactly one short pack.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class MovieTarget:
    movie_id: str

    @property
    def key(self) -> str:
        return f"movie:{self.movie_id}"


@dataclass(frozen=True)
class PackTarget:
    pack_id: str

    @property
    def key(self) -> str:
        return f"pack:{self.pack_id}"


RentalTarget = Union[MovieTarget, PackTarget]
