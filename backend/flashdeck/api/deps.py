"""
Flashdeck - API Dependencies
FastAPI dependencies for identity, database sessions and error mapping
"""
from typing import Annotated

from fastapi import Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.ai.flashcard_generator import FlashcardGenerator, get_flashcard_generator
from flashdeck.core.database import get_db
from flashdeck.core.entitlements import Identity
from flashdeck.core.exceptions import FlashdeckError, UnauthorizedError
from flashdeck.core.security import verify_token

# Security scheme; a missing header is reported as 401 below, not 403
security = HTTPBearer(auto_error=False)

REVALIDATE_HEADER = "X-Revalidate-Paths"


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """
    Resolve the caller from the identity provider's bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UnauthorizedError.default_message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = verify_token(credentials.credentials, token_type="access")
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Identity.from_claims(claims)


def http_error(error: FlashdeckError) -> HTTPException:
    """Translate a domain error into the HTTP error the client sees."""
    return HTTPException(status_code=error.status_code, detail=error.message)


def revalidate(response: Response, *paths: str) -> None:
    """Tell the browser which cached pages are stale after a write."""
    response.headers[REVALIDATE_HEADER] = ",".join(paths)


# Type aliases for common dependencies
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Generator = Annotated[FlashcardGenerator, Depends(get_flashcard_generator)]
