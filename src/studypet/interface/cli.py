"""StudyPet CLI: review, scheduling, generation and pet commands."""

import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer

from studypet.application.config import resolve_config
from studypet.application.factory import build_services
from studypet.application.review_service import RawSignals
from studypet.domain.errors import StudyPetError
from studypet.domain.models import DifficultyLabel

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="studypet: Adaptive flashcards that grow a virtual pet.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage studypet configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _jsonable(asdict(value))
    if hasattr(value, "model_dump"):
        return _jsonable(value.model_dump())
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _emit(value: Any) -> None:
    typer.echo(json.dumps(_jsonable(value), indent=2))


def _config(ctx: typer.Context, **overrides):
    base = dict(ctx.obj or {})
    base.update(overrides)
    return resolve_config(base)


def _fail(e: StudyPetError):
    logger.debug("Command failed", exc_info=e)
    typer.secho(f"Error: {e}", fg="red", err=True)
    raise typer.Exit(1) from e


def _run(coro):
    """Run a coroutine, turning domain errors into a red message and exit code 1."""
    try:
        return asyncio.run(coro)
    except StudyPetError as e:
        _fail(e)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    db_path: Annotated[Path | None, typer.Option("--db", help="SQLite database file.")] = None,
    backend: Annotated[str | None, typer.Option(help="Storage backend: sqlite, memory.")] = None,
):
    """Global settings for studypet."""
    logging.getLogger().setLevel(_LOG_LEVELS.get(verbose, logging.DEBUG))
    ctx.ensure_object(dict)
    ctx.obj.update({"verbose": verbose, "db_path": db_path, "backend": backend})


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    pet_name: Annotated[str | None, typer.Option(help="Name for the new pet.")] = None,
    pet_type: Annotated[str | None, typer.Option(help="Pet species.")] = None,
    goal: Annotated[list[str] | None, typer.Option(help="Learning goal (repeatable).")] = None,
):
    """Create a profile with a fresh pet egg."""
    services = build_services(_config(ctx))
    profile = _run(services.reviews.initialize_user(user, pet_name, pet_type, goal or []))
    _emit(profile)


@app.command()
def review(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    card_id: Annotated[str, typer.Argument(help="Card being graded.")],
    grade: Annotated[int, typer.Argument(help="Recall quality 1-5.")],
    topic: Annotated[str | None, typer.Option(help="Topic override.")] = None,
    time_ms: Annotated[
        int | None, typer.Option("--time-ms", help="Response time. Enables proficiency tracking.")
    ] = None,
    flipped: Annotated[
        bool, typer.Option("--flipped", help="The answer was revealed before grading.")
    ] = False,
    card_difficulty: Annotated[
        float | None, typer.Option(help="Override the card's 1-10 difficulty.")
    ] = None,
):
    """[bold green]Grade[/bold green] a card and update scheduling, proficiency and pet."""
    services = build_services(_config(ctx))
    signals = None
    if time_ms is not None:
        signals = RawSignals(
            response_time_ms=time_ms, was_flipped=flipped, card_difficulty=card_difficulty
        )
    outcome = _run(services.reviews.submit_review(user, card_id, grade, topic, signals))
    _emit(outcome)
    if outcome.pet_update.evolved:
        typer.secho(f"Your pet evolved into a {outcome.pet_update.stage.value}!", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    topic: Annotated[str | None, typer.Option(help="Filter by topic.")] = None,
):
    """List cards due for review, oldest first."""
    services = build_services(_config(ctx))
    cards = _run(services.reviews.get_due_cards(user, topic))
    if not cards:
        typer.secho("No cards due.", fg="yellow")
        return
    for card in cards:
        typer.echo(
            f"{card.id}\t{card.topic}\t{card.next_review.isoformat()}\t{card.front}"
        )


@app.command()
def difficulty(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    topic: Annotated[str, typer.Argument(help="Topic.")],
):
    """Show the target difficulty for new content on a topic."""
    services = build_services(_config(ctx))
    target, proficiency = _run(services.reviews.get_target_difficulty(user, topic))
    _emit(
        {
            "topic": topic,
            "proficiency": proficiency,
            "difficulty": target.difficulty,
            "difficulty_label": target.difficulty_label,
        }
    )


@app.command()
def generate(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    topic: Annotated[str, typer.Argument(help="Topic for the new deck.")],
    label: Annotated[
        DifficultyLabel | None,
        typer.Option(help="Fixed difficulty label. Adaptive when omitted."),
    ] = None,
    level: Annotated[int | None, typer.Option(help="Fixed 1-10 difficulty level.")] = None,
):
    """Generate a new deck, at the adaptive target difficulty by default."""
    config = _config(ctx)

    async def run():
        services = build_services(config, with_generator=True)
        try:
            if label is None and level is None:
                return await services.decks.generate_next_deck(user, topic)
            return await services.decks.generate_deck(
                user,
                topic,
                difficulty_label=label or DifficultyLabel.BEGINNER,
                numeric_difficulty=level,
            )
        finally:
            await services.generator.aclose()

    _emit(_run(run()))


@app.command()
def boss(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    topic: Annotated[str, typer.Argument(help="Topic.")],
):
    """Summon a boss built from your weakest cards."""
    config = _config(ctx)

    async def run():
        services = build_services(config, with_generator=True)
        try:
            return await services.decks.generate_boss_encounter(user, topic)
        finally:
            await services.generator.aclose()

    encounter = _run(run())
    if not encounter.available:
        typer.secho(encounter.message, fg="yellow")
        return
    _emit(encounter.questions)


@app.command()
def placement(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    topic: Annotated[str, typer.Argument(help="Topic to assess.")],
):
    """Take a short placement quiz to seed your proficiency on a topic."""
    from studypet.application.placement import (
        PlacementResponse,
        apply_placement,
        evaluate_placement,
        generate_placement_quiz,
    )

    try:
        services = build_services(_config(ctx), with_generator=True)
    except StudyPetError as e:
        _fail(e)

    async def fetch():
        try:
            return await generate_placement_quiz(services.generator, topic)
        finally:
            await services.generator.aclose()

    questions = _run(fetch())
    if not questions:
        typer.secho("Could not generate a placement quiz. Starting at default level.", fg="yellow")
        return

    responses = []
    for i, q in enumerate(questions):
        typer.echo(f"\n{q.question}")
        for n, option in enumerate(q.options, start=1):
            typer.echo(f"  {n}. {option}")
        started = time.monotonic()
        choice = typer.prompt("Answer", type=int)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        answer = q.options[choice - 1] if 1 <= choice <= len(q.options) else ""
        responses.append(
            PlacementResponse(
                question_index=i, user_answer=answer, correct=answer == q.answer, time_ms=elapsed_ms
            )
        )

    result = evaluate_placement(responses)
    state = _run(apply_placement(services.reviews, user, topic, result))
    typer.secho(
        f"Placed at {result.recommended_difficulty.value} "
        f"(proficiency {state.proficiency_score:.0f}).",
        fg="green",
    )


@app.command()
def feed(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
):
    """Spend coins to feed your pet."""
    services = build_services(_config(ctx))
    result = _run(services.reviews.feed_pet(user))
    _emit(result)
    if not result.fed:
        raise typer.Exit(1)


@app.command()
def decks(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
):
    """List your decks, newest first."""
    services = build_services(_config(ctx))
    found = _run(services.reviews.list_decks(user))
    if not found:
        typer.secho("No decks yet.", fg="yellow")
        return
    for deck in found:
        typer.echo(f"{deck.id}\t{deck.topic}\t{deck.created_at.isoformat()}")


@app.command()
def cards(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    topic: Annotated[str | None, typer.Option(help="Filter by topic.")] = None,
):
    """Show your whole card collection with its scheduling state."""
    services = build_services(_config(ctx))
    _emit(_run(services.reviews.list_cards(user, topic)))


@app.command()
def persona(
    ctx: typer.Context,
    goal: Annotated[list[str], typer.Option(help="Learning goal (repeatable).")],
):
    """Suggest a pet type that fits your learning goals."""
    from studypet.application.companion import generate_pet_persona

    config = _config(ctx)

    async def run():
        services = build_services(config, with_generator=True)
        try:
            return await generate_pet_persona(services.generator, goal)
        finally:
            await services.generator.aclose()

    _emit(_run(run()))


@app.command()
def chat(
    ctx: typer.Context,
    user: Annotated[str, typer.Argument(help="User ID.")],
    message: Annotated[str, typer.Argument(help="What to say to your pet.")],
    context: Annotated[str | None, typer.Option(help="What you are studying.")] = None,
):
    """Talk to your pet."""
    from studypet.application.companion import chat_with_pet

    config = _config(ctx)

    async def run():
        services = build_services(config, with_generator=True)
        try:
            profile = await services.reviews.get_profile(user)
            return await chat_with_pet(services.generator, message, context, profile)
        finally:
            await services.generator.aclose()

    typer.echo(_run(run()))


@app.command()
def server(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port.")] = 8777,
    reload: Annotated[bool, typer.Option("--reload", help="Auto-reload on changes.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("studypet.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    if d.get("api_key") is not None:
        d["api_key"] = "********"
    typer.echo(json.dumps(d, indent=2))
