"""
Short-lived signed tokens for HLS playback.

A token is minted after the access check passes and handed to the player
inside a signed URL. The video server verifies it without touching the
database: only the HMAC signature and the embedded expiry are checked.
There is no revocation; exposure is bounded by the TTL.

Tokens are compact JWTs signed with HS256. Claims:
- movie_id:   movie the token unlocks
- video_path: path prefix the token is valid for (hls/<slug>/master.m3u8)
- sub:        user:<id> or anon:<id>
- iat, exp:   issue and expiry time (seconds since epoch)
- iss:        issuer
"""

import os
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import jwt
from pydantic import BaseModel, Field

from lao_cinema.auth.identity import Identity
from lao_cinema.errors import TokenServiceConfigError
from lao_cinema.models.base import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class VideoTokenConfig(BaseModel):
    """Configuration for video token signing."""
    secret: str = Field(..., min_length=1)
    algorithm: str = "HS256"
    ttl_seconds: int = Field(DEFAULT_TTL_SECONDS, gt=0)
    issuer: str = "lao-cinema-api"
    video_server_url: str = "http://localhost:3002"


class IssuedVideoToken(BaseModel):
    """Result of token issuance."""
    token: str
    expires_at: datetime
    expires_in: int


class VideoTokenVerification(BaseModel):
    """
    Result of token verification.

    ``error`` is a fixed message and never says why verification failed.
    """
    valid: bool
    movie_id: Optional[str] = None
    video_path: Optional[str] = None
    error: Optional[str] = None


_INVALID = VideoTokenVerification(valid=False, error=INVALID_TOKEN_MESSAGE)


def build_video_path(source_url: str) -> str:
    """HLS master playlist path for a video source slug."""
    slug = source_url.strip().strip("/")
    return f"hls/{slug}/master.m3u8"


def load_video_token_config() -> VideoTokenConfig:
    """Build VideoTokenConfig from environment variables."""
    secret = os.getenv("VIDEO_TOKEN_SECRET")
    if not secret:
        raise TokenServiceConfigError("VIDEO_TOKEN_SECRET environment variable is required")

    return VideoTokenConfig(
        secret=secret,
        ttl_seconds=int(os.getenv("VIDEO_TOKEN_TTL_SECONDS", str(DEFAULT_TTL_SECONDS))),
        issuer=os.getenv("VIDEO_TOKEN_ISSUER", "lao-cinema-api"),
        video_server_url=os.getenv("VIDEO_SERVER_URL", "http://localhost:3002"),
    )


class VideoTokenService:
    """Issues and verifies video playback tokens."""

    def __init__(
        self,
        config: Optional[VideoTokenConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            config: Token configuration. If not provided, loads from environment.
            clock: Source of the current time; defaults to the system clock.
        """
        self.config = config or load_video_token_config()
        self._clock = clock or utcnow

    def issue(self, movie_id: str, identity: Identity, video_path: str) -> IssuedVideoToken:
        """
        Sign a token for ``video_path`` of ``movie_id``.

        Callers must have already checked that ``identity`` may watch the movie.
        """
        now = self._clock()
        iat = int(now.timestamp())
        exp = iat + self.config.ttl_seconds

        payload = {
            "movie_id": movie_id,
            "video_path": video_path,
            "sub": identity.key,
            "iss": self.config.issuer,
            "iat": iat,
            "exp": exp,
        }
        token = jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

        logger.info(
            "Video token issued",
            extra={"movie_id": movie_id, "ttl_seconds": self.config.ttl_seconds},
        )
        return IssuedVideoToken(
            token=token,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
            expires_in=self.config.ttl_seconds,
        )

    def verify(self, token: Optional[str]) -> VideoTokenVerification:
        """
        Check signature and expiry. A token is rejected from its expiry
        instant onward.
        """
        if not token or not isinstance(token, str):
            return _INVALID

        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options={
                    "require": ["exp", "iss", "movie_id", "video_path"],
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.info("Video token rejected", extra={"reason": type(e).__name__})
            return _INVALID

        exp = payload.get("exp")
        movie_id = payload.get("movie_id")
        video_path = payload.get("video_path")
        if not isinstance(exp, int) or not isinstance(movie_id, str) or not isinstance(video_path, str):
            logger.info("Video token rejected", extra={"reason": "MalformedClaims"})
            return _INVALID

        if self._clock().timestamp() >= exp:
            logger.info("Video token rejected", extra={"reason": "Expired"})
            return _INVALID

        return VideoTokenVerification(valid=True, movie_id=movie_id, video_path=video_path)

    def build_signed_url(self, video_path: str, token: str) -> str:
        """
        Playback URL for the player.

        Cloud storage buckets serve the path at the root; the local video
        server mounts it under /videos.
        """
        base = self.config.video_server_url.rstrip("/")
        if "storage.googleapis.com" in base:
            return f"{base}/{video_path}?token={token}"
        return f"{base}/videos/{video_path}?token={token}"


def get_video_token_service() -> VideoTokenService:
    """Factory function for VideoTokenService."""
    return VideoTokenService()
