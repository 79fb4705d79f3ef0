"""
Service Factory
Centralizes the logic for selecting storage and generation adapters.
"""

from dataclasses import dataclass

from studypet.application.config import AppConfig
from studypet.application.deck_service import DeckService
from studypet.application.review_service import ReviewService
from studypet.domain.errors import ContentGenerationError
from studypet.domain.ports import ContentGenerator
from studypet.infrastructure.adapters.chat_generator import ChatCompletionsGenerator
from studypet.infrastructure.adapters.memory_store import InMemoryStore
from studypet.infrastructure.adapters.sqlite_store import SqliteStore


@dataclass
class Services:
    store: InMemoryStore | SqliteStore
    reviews: ReviewService
    generator: ContentGenerator | None = None
    decks: DeckService | None = None


def get_store(config: AppConfig) -> InMemoryStore | SqliteStore:
    if config.backend == "memory":
        return InMemoryStore()
    return SqliteStore(config.db_path)


def get_generator(config: AppConfig) -> ContentGenerator:
    """
    Returns the content generator configured for this run.

    Raises:
        ContentGenerationError: If no API key is configured.
    """
    if config.api_key is None:
        raise ContentGenerationError(
            "No API key configured. Set STUDYPET_API_KEY or api_key in config.toml."
        )
    return ChatCompletionsGenerator(
        api_key=config.api_key.get_secret_value(),
        base_url=config.api_url,
        model=config.model,
        timeout=config.request_timeout,
    )


def build_services(config: AppConfig, with_generator: bool = False) -> Services:
    store = get_store(config)
    reviews = ReviewService(
        cards=store,
        proficiencies=store,
        profiles=store,
        review_log=store,
        ease_boost=config.proficiency_ease_boost,
    )
    services = Services(store=store, reviews=reviews)

    if with_generator:
        services.generator = get_generator(config)
        services.decks = DeckService(
            cards=store,
            generator=services.generator,
            reviews=reviews,
            cards_per_deck=config.cards_per_deck,
            temperature=config.temperature,
        )
    return services
