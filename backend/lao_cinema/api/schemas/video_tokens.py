"""
Video token request/response schemas.
"""

from typing import Optional

from pydantic import Field

from lao_cinema.api.schemas.common import CamelModel


class VideoTokenRequest(CamelModel):
    """Request a playback URL for one video source of a movie."""
    movie_id: str = Field(..., min_length=1, description="Movie to play")
    video_source_id: str = Field(..., min_length=1, description="Video source of that movie")


class VideoTokenResponse(CamelModel):
    url: str = Field(..., description="Signed playback URL")
    expires_in: int = Field(..., description="Seconds until the token expires")


class TokenValidationResponse(CamelModel):
    valid: bool
    movie_id: Optional[str] = None
    video_path: Optional[str] = None
    error: Optional[str] = None
