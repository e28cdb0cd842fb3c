"""
Flashdeck - AI Generation API Router
Endpoints for generating a deck's cards with AI
"""
import logging

from fastapi import APIRouter, Response

from flashdeck.api.deps import CurrentIdentity, DbSession, Generator, http_error, revalidate
from flashdeck.core.exceptions import FlashdeckError
from flashdeck.schemas.deck import CardResponse
from flashdeck.schemas.generation import GenerationResponse, GenerationStatusResponse
from flashdeck.services.generation import GenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/decks", tags=["AI Generation"])


@router.get(
    "/{deck_id}/generate",
    response_model=GenerationStatusResponse,
    summary="AI generation status",
    description="Whether the current user can still generate cards for this deck.",
)
async def get_generation_status(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
    generator: Generator,
) -> GenerationStatusResponse:
    service = GenerationService(db, generator)

    try:
        result = await service.status(identity, deck_id)
    except FlashdeckError as e:
        raise http_error(e)

    return GenerationStatusResponse(**vars(result))


@router.post(
    "/{deck_id}/generate",
    response_model=GenerationResponse,
    summary="Generate cards with AI",
    description=(
        "Generates exactly 20 cards from the deck's name and description. "
        "Each deck can use AI generation once."
    ),
)
async def generate_cards(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
    generator: Generator,
    response: Response,
) -> GenerationResponse:
    service = GenerationService(db, generator)

    try:
        result = await service.generate(identity, deck_id)
    except FlashdeckError as e:
        logger.warning("AI generation for deck %s failed: %s", deck_id, e.message)
        raise http_error(e)

    revalidate(response, f"/decks/{deck_id}")
    return GenerationResponse(
        cards=[CardResponse.model_validate(card) for card in result.cards],
        count=result.count,
    )
