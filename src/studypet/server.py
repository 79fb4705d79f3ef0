import logging
import time
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from studypet.application.factory import Services, build_services, get_generator
from studypet.application.review_service import RawSignals
from studypet.consts import VERSION
from studypet.domain.errors import ContentGenerationError, UpstreamDataUnavailable
from studypet.domain.models import DifficultyLabel

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("studypet.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"StudyPet Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("StudyPet Server shutting down...")
    if get_services.cache_info().currsize:
        generator = get_services().generator
        if generator is not None:
            await generator.aclose()


app = FastAPI(
    title="StudyPet Server",
    description="Adaptive spaced-repetition API for StudyPet clients.",
    version=VERSION,
    lifespan=lifespan,
)


@lru_cache(maxsize=1)
def get_services() -> Services:
    """One set of services per process, so per-key review locks are shared."""
    from studypet.application.config import resolve_config

    return build_services(resolve_config())


ServicesDep = Annotated[Services, Depends(get_services)]


def _http_error(e: Exception, action: str) -> HTTPException:
    if isinstance(e, UpstreamDataUnavailable):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ContentGenerationError):
        logger.error(f"{action} failed: {e}")
        return HTTPException(status_code=502, detail=str(e))
    logger.error(f"{action} failed: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=str(e))


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------- Users ----------


class UserRequest(BaseModel):
    user_id: str
    pet_name: str | None = None
    pet_type: str | None = None
    learning_goals: list[str] = []


class ProfileResponse(BaseModel):
    id: str
    xp: int
    health: int
    stage: str
    coins: int
    current_streak: int
    pet_name: str | None = None
    pet_type: str | None = None


def _profile_response(profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        xp=profile.xp,
        health=profile.health,
        stage=profile.stage.value,
        coins=profile.coins,
        current_streak=profile.current_streak,
        pet_name=profile.pet_name,
        pet_type=profile.pet_type,
    )


@app.post("/users", response_model=ProfileResponse)
async def create_user(req: UserRequest, services: ServicesDep):
    try:
        profile = await services.reviews.initialize_user(
            req.user_id, req.pet_name, req.pet_type, req.learning_goals
        )
    except Exception as e:
        raise _http_error(e, "User setup") from e
    return _profile_response(profile)


@app.get("/users/{user_id}", response_model=ProfileResponse)
async def get_user(user_id: str, services: ServicesDep):
    try:
        profile = await services.reviews.get_profile(user_id)
    except Exception as e:
        raise _http_error(e, "Profile fetch") from e
    return _profile_response(profile)


# ---------- Reviews ----------


class ReviewRequest(BaseModel):
    user_id: str
    card_id: str
    grade: int = Field(ge=0, le=5)
    topic: str | None = None
    # Proficiency tracking runs only when a response time is supplied
    response_time_ms: int | None = Field(default=None, ge=0)
    was_flipped: bool = False
    card_difficulty: float | None = Field(default=None, ge=1, le=10)


class ReviewResponse(BaseModel):
    interval: int
    ease_factor: float
    next_review: str
    topic: str
    xp: int
    health: int
    stage: str
    evolved: bool
    coins: int
    current_streak: int
    performance_score: float | None = None
    new_proficiency: float | None = None
    proficiency_change: float | None = None
    target_difficulty: int | None = None
    target_label: str | None = None


@app.post("/reviews", response_model=ReviewResponse)
async def submit_review(req: ReviewRequest, services: ServicesDep):
    """
    Grade a card: reschedules it, updates topic proficiency when signals are
    present, and pays out pet rewards.
    """
    signals = None
    if req.response_time_ms is not None:
        signals = RawSignals(
            response_time_ms=req.response_time_ms,
            was_flipped=req.was_flipped,
            card_difficulty=req.card_difficulty,
        )
    try:
        outcome = await services.reviews.submit_review(
            req.user_id, req.card_id, req.grade, req.topic, signals
        )
    except Exception as e:
        raise _http_error(e, "Review") from e

    response = ReviewResponse(
        interval=outcome.card_update.interval,
        ease_factor=outcome.card_update.ease_factor,
        next_review=outcome.card_update.next_review.isoformat(),
        topic=outcome.topic,
        xp=outcome.pet_update.xp,
        health=outcome.pet_update.health,
        stage=outcome.pet_update.stage.value,
        evolved=outcome.pet_update.evolved,
        coins=outcome.streak_update.coins,
        current_streak=outcome.streak_update.current_streak,
    )
    if outcome.proficiency_update is not None:
        response.performance_score = outcome.performance.raw_score
        response.new_proficiency = outcome.proficiency_update.new_proficiency
        response.proficiency_change = outcome.proficiency_update.change
        response.target_difficulty = outcome.target.difficulty
        response.target_label = outcome.target.difficulty_label.value
    return response


class CardResponse(BaseModel):
    id: str
    deck_id: str
    topic: str | None
    question: str
    answer: str
    interval: int
    ease_factor: float
    next_review: str
    difficulty: float | None = None


def _card_response(c) -> CardResponse:
    return CardResponse(
        id=c.id,
        deck_id=c.deck_id,
        topic=c.topic,
        question=c.front,
        answer=c.back,
        interval=c.interval,
        ease_factor=c.ease_factor,
        next_review=c.next_review.isoformat(),
        difficulty=c.difficulty,
    )


@app.get("/cards/due", response_model=list[CardResponse])
async def due_cards(user_id: str, services: ServicesDep, topic: str | None = None):
    try:
        cards = await services.reviews.get_due_cards(user_id, topic)
    except Exception as e:
        raise _http_error(e, "Due cards") from e
    return [_card_response(c) for c in cards]


@app.get("/difficulty")
async def target_difficulty(user_id: str, topic: str, services: ServicesDep):
    """Difficulty the next batch of content on this topic should be generated at."""
    try:
        target, proficiency = await services.reviews.get_target_difficulty(user_id, topic)
    except Exception as e:
        raise _http_error(e, "Difficulty lookup") from e
    return {
        "topic": topic,
        "proficiency": proficiency,
        "difficulty": target.difficulty,
        "difficulty_label": target.difficulty_label.value,
    }


# ---------- Collection ----------


class DeckSummary(BaseModel):
    id: str
    topic: str
    created_at: str


@app.get("/decks", response_model=list[DeckSummary])
async def list_decks(user_id: str, services: ServicesDep):
    try:
        decks = await services.reviews.list_decks(user_id)
    except Exception as e:
        raise _http_error(e, "Deck listing") from e
    return [
        DeckSummary(id=d.id, topic=d.topic, created_at=d.created_at.isoformat()) for d in decks
    ]


@app.get("/cards", response_model=list[CardResponse])
async def list_cards(user_id: str, services: ServicesDep, topic: str | None = None):
    """The learner's whole collection, newest first."""
    try:
        cards = await services.reviews.list_cards(user_id, topic)
    except Exception as e:
        raise _http_error(e, "Card listing") from e
    return [_card_response(c) for c in cards]


# ---------- Generation ----------


class DeckRequest(BaseModel):
    user_id: str
    topic: str
    # Adaptive when both are omitted
    difficulty_label: DifficultyLabel | None = None
    numeric_difficulty: int | None = Field(default=None, ge=1, le=10)


def _generator(services: Services):
    """Attach a generator lazily so the rest of the API works without an API key."""
    if services.generator is None:
        from studypet.application.config import resolve_config

        services.generator = get_generator(resolve_config())
    return services.generator


def _deck_service(services: Services):
    if services.decks is None:
        from studypet.application.config import resolve_config
        from studypet.application.deck_service import DeckService

        config = resolve_config()
        services.decks = DeckService(
            cards=services.store,
            generator=_generator(services),
            reviews=services.reviews,
            cards_per_deck=config.cards_per_deck,
            temperature=config.temperature,
        )
    return services.decks


@app.post("/decks/generate")
async def generate_deck(req: DeckRequest, services: ServicesDep):
    logger.info(f"Deck generation requested via API: {req}")
    try:
        decks = _deck_service(services)
        if req.difficulty_label is None and req.numeric_difficulty is None:
            deck = await decks.generate_next_deck(req.user_id, req.topic)
        else:
            deck = await decks.generate_deck(
                req.user_id,
                req.topic,
                difficulty_label=req.difficulty_label or DifficultyLabel.BEGINNER,
                numeric_difficulty=req.numeric_difficulty,
            )
    except Exception as e:
        raise _http_error(e, "Deck generation") from e
    return deck.model_dump()


# ---------- Pet ----------


class UserIdRequest(BaseModel):
    user_id: str


@app.post("/pet/feed")
async def feed_pet(req: UserIdRequest, services: ServicesDep):
    try:
        result = await services.reviews.feed_pet(req.user_id)
    except Exception as e:
        raise _http_error(e, "Feed") from e
    return {
        "success": result.fed,
        "message": result.message,
        "coins": result.coins,
        "health": result.health,
        "xp": result.xp,
    }


class PersonaRequest(BaseModel):
    goals: list[str]


@app.post("/pet/persona")
async def pet_persona(req: PersonaRequest, services: ServicesDep):
    """Suggest a pet type themed on the learner's goals."""
    from studypet.application.companion import generate_pet_persona

    try:
        persona = await generate_pet_persona(_generator(services), req.goals)
    except Exception as e:
        raise _http_error(e, "Persona generation") from e
    return persona.model_dump()


class ChatRequest(BaseModel):
    user_id: str
    message: str
    context: str | None = None


@app.post("/pet/chat")
async def pet_chat(req: ChatRequest, services: ServicesDep):
    from studypet.application.companion import chat_with_pet

    try:
        profile = await services.reviews.get_profile(req.user_id)
        reply = await chat_with_pet(_generator(services), req.message, req.context, profile)
    except Exception as e:
        raise _http_error(e, "Pet chat") from e
    return {"reply": reply}


class BossRequest(BaseModel):
    user_id: str
    topic: str


@app.post("/boss")
async def summon_boss(req: BossRequest, services: ServicesDep):
    try:
        encounter = await _deck_service(services).generate_boss_encounter(req.user_id, req.topic)
    except Exception as e:
        raise _http_error(e, "Boss generation") from e
    return {
        "available": encounter.available,
        "message": encounter.message,
        "questions": encounter.questions,
    }


class BossResultRequest(BaseModel):
    user_id: str
    passed: bool


@app.post("/boss/result")
async def boss_result(req: BossResultRequest, services: ServicesDep):
    try:
        message = await services.reviews.submit_boss_result(req.user_id, req.passed)
    except Exception as e:
        raise _http_error(e, "Boss result") from e
    return {"success": True, "message": message}
