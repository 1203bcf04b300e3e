"""
Video token API routes.

- POST /api/video-tokens: check the caller's rental and return a signed
  playback URL for one video source
- GET /api/video-tokens/validate: used by the video server to verify a
  token without database access
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from lao_cinema.api.dependencies import get_access_resolver, get_token_service
from lao_cinema.api.schemas.video_tokens import (
    TokenValidationResponse,
    VideoTokenRequest,
    VideoTokenResponse,
)
from lao_cinema.auth.dependencies import require_auth_or_anonymous
from lao_cinema.auth.identity import AuthContext
from lao_cinema.database.session import get_db_session
from lao_cinema.errors import ForbiddenError, NotFoundError
from lao_cinema.repositories.movie_repo import MovieRepository
from lao_cinema.services.access_resolver import AccessResolver
from lao_cinema.services.video_token_service import VideoTokenService, build_video_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/video-tokens", tags=["video-tokens"])


@router.post("", response_model=VideoTokenResponse)
async def create_video_token(
    body: VideoTokenRequest,
    auth: AuthContext = Depends(require_auth_or_anonymous),
    db=Depends(get_db_session),
    access: AccessResolver = Depends(get_access_resolver),
    tokens: VideoTokenService = Depends(get_token_service),
):
    """
    Issue a playback URL.

    404 if the video source does not exist or belongs to another movie;
    403 RENTAL_REQUIRED if the caller has no active rental covering the movie.
    """
    source = MovieRepository(db).get_video_source(body.video_source_id)
    if source is None or source.movie_id != body.movie_id:
        raise NotFoundError("Video source not found")

    decision = access.check_movie_access(auth.identity, body.movie_id)
    if not decision.granted:
        raise ForbiddenError("An active rental is required to watch this movie", error_code="RENTAL_REQUIRED")

    video_path = build_video_path(source.url)
    issued = tokens.issue(body.movie_id, auth.identity, video_path)

    logger.info(
        "Playback URL issued",
        extra={"movie_id": body.movie_id, "access_type": decision.access_type},
    )
    return VideoTokenResponse(
        url=tokens.build_signed_url(video_path, issued.token),
        expires_in=issued.expires_in,
    )


def _validation_response(result) -> JSONResponse:
    body = TokenValidationResponse(**result.model_dump())
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.valid else status.HTTP_401_UNAUTHORIZED,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.get("/validate", response_model=TokenValidationResponse)
async def validate_token_query(
    token: Optional[str] = Query(None),
    tokens: VideoTokenService = Depends(get_token_service),
):
    """Verify a token passed as ``?token=``."""
    if not token:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"valid": False, "error": "Token is required"},
        )
    return _validation_response(tokens.verify(token))


@router.get("/validate/{token}", response_model=TokenValidationResponse)
async def validate_token_path(
    token: str,
    tokens: VideoTokenService = Depends(get_token_service),
):
    """Verify a token passed in the path."""
    return _validation_response(tokens.verify(token))
