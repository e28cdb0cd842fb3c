"""
Flashdeck - Identity & Entitlements
The identity provider decides who the user is and which plan features they
hold; this module only carries that decision into the services.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Feature(str, Enum):
    """Feature flags granted by the billing/identity provider."""
    UNLIMITED_DECKS = "unlimited_decks"
    THREE_DECKS_LIMIT = "3_decks_limit"
    AI_FLASHCARDS_GENERATION = "ai_flashcards_generation"
    ONE_AI_FLASHCARDS_GENERATION = "one_ai_flashcards_generation"


@dataclass(frozen=True)
class Identity:
    """The authenticated caller and the capability set attached to them."""

    user_id: str
    features: frozenset[str] = field(default_factory=frozenset)
    plan: str | None = None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "Identity":
        features = claims.get("features") or []
        if isinstance(features, str):
            features = [f.strip() for f in features.split(",") if f.strip()]
        return cls(
            user_id=str(claims["sub"]),
            features=frozenset(features),
            plan=claims.get("plan"),
        )

    def has(self, feature: Feature | str) -> bool:
        value = feature.value if isinstance(feature, Feature) else feature
        return value in self.features

    def has_plan(self, plan: str) -> bool:
        return self.plan == plan

    @property
    def has_unlimited_decks(self) -> bool:
        return self.has(Feature.UNLIMITED_DECKS)

    @property
    def has_ai_access(self) -> bool:
        return self.has(Feature.AI_FLASHCARDS_GENERATION) or self.has(
            Feature.ONE_AI_FLASHCARDS_GENERATION
        )

    @property
    def is_free_plan(self) -> bool:
        return not self.has(Feature.AI_FLASHCARDS_GENERATION)
