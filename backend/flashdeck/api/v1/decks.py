"""
Flashdeck - Decks API Router
Endpoints for creating, reading, updating, deleting and duplicating decks
"""
from fastapi import APIRouter, Response, status

from flashdeck.api.deps import CurrentIdentity, DbSession, http_error, revalidate
from flashdeck.core.exceptions import FlashdeckError
from flashdeck.models.deck import Deck
from flashdeck.schemas.deck import DeckCreate, DeckLimitsResponse, DeckResponse, DeckUpdate
from flashdeck.services.decks import DeckService

router = APIRouter(prefix="/decks", tags=["Decks"])


def to_response(deck: Deck, card_count: int = 0) -> DeckResponse:
    response = DeckResponse.model_validate(deck)
    response.card_count = card_count
    return response


@router.get(
    "",
    response_model=list[DeckResponse],
    summary="List decks",
    description="All decks of the current user, most recently updated first.",
)
async def list_decks(
    identity: CurrentIdentity,
    db: DbSession,
) -> list[DeckResponse]:
    service = DeckService(db)
    decks = await service.list_decks(identity.user_id)
    return [to_response(deck, count) for deck, count in decks]


@router.get(
    "/limits",
    response_model=DeckLimitsResponse,
    summary="Deck limits",
    description="Deck count against the plan limit, and whether the user is on Pro.",
)
async def get_deck_limits(
    identity: CurrentIdentity,
    db: DbSession,
) -> DeckLimitsResponse:
    service = DeckService(db)
    limits = await service.deck_limits(identity)
    return DeckLimitsResponse(**vars(limits))


@router.post(
    "",
    response_model=DeckResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a deck",
    description="Free-plan users are limited to 3 decks.",
)
async def create_deck(
    data: DeckCreate,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> DeckResponse:
    service = DeckService(db)

    try:
        deck = await service.create_deck(identity, data)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, "/dashboard", "/decks")
    return to_response(deck)


@router.get("/{deck_id}", response_model=DeckResponse, summary="Get a deck")
async def get_deck(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
) -> DeckResponse:
    service = DeckService(db)

    try:
        deck, card_count = await service.get_deck_with_card_count(identity.user_id, deck_id)
    except FlashdeckError as e:
        raise http_error(e)

    return to_response(deck, card_count)


@router.patch("/{deck_id}", response_model=DeckResponse, summary="Update a deck")
async def update_deck(
    deck_id: int,
    data: DeckUpdate,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> DeckResponse:
    service = DeckService(db)

    try:
        deck = await service.update_deck(identity.user_id, deck_id, data)
        card_count = await service.count_cards(deck.id)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, "/dashboard", "/decks", f"/decks/{deck_id}")
    return to_response(deck, card_count)


@router.delete(
    "/{deck_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a deck",
    description="Deletes the deck and every card in it.",
)
async def delete_deck(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> None:
    service = DeckService(db)

    try:
        await service.delete_deck(identity.user_id, deck_id)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, "/dashboard", "/decks")


@router.post(
    "/{deck_id}/duplicate",
    response_model=DeckResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate a deck",
    description="Copies the deck and all of its cards.",
)
async def duplicate_deck(
    deck_id: int,
    identity: CurrentIdentity,
    db: DbSession,
    response: Response,
) -> DeckResponse:
    service = DeckService(db)

    try:
        deck = await service.duplicate_deck(identity, deck_id)
        card_count = await service.count_cards(deck.id)
    except FlashdeckError as e:
        raise http_error(e)

    revalidate(response, "/dashboard", "/decks")
    return to_response(deck, card_count)
