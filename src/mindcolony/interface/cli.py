"""MindColony CLI: root commands and subgroup registration."""

import json
import logging
import sys
import time
from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from mindcolony.application.config import resolve_config
from mindcolony.application.factory import create_study_service
from mindcolony.application.study_service import StudyService
from mindcolony.domain.constants import BOX_TIERS, MAX_BOX_LEVEL, MIN_BOX_LEVEL
from mindcolony.domain.models import AllDue, ByBox, ByDeck, Card, DueScope
from mindcolony.infrastructure.log_setup import setup_logging

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mindcolony: Leitner-box flashcard study tool.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

deck_app = typer.Typer(help="Manage decks.", no_args_is_help=True)
card_app = typer.Typer(help="Manage cards.", no_args_is_help=True)
session_app = typer.Typer(help="Inspect and close study sessions.", no_args_is_help=True)
config_app = typer.Typer(help="Manage mindcolony configuration.")

app.add_typer(deck_app, name="deck")
app.add_typer(card_app, name="card")
app.add_typer(session_app, name="session")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Not JSON serializable: {type(value).__name__}")


def _dump(value: Any) -> str:
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    elif isinstance(value, list):
        value = [asdict(v) if is_dataclass(v) else v for v in value]
    return json.dumps(value, indent=2, default=_json_default)


def _service(ctx: typer.Context) -> StudyService:
    """Build the study service once per invocation from resolved config."""
    obj = ctx.ensure_object(dict)
    if "service" not in obj:
        config = resolve_config(obj.get("overrides"))
        setup_logging(config.log_dir, config.verbose)
        obj["service"] = create_study_service(config)
    return obj["service"]


def _scope(deck: str | None, box: int | None) -> DueScope:
    if deck and box is not None:
        typer.secho("Use either --deck or --box, not both.", fg="red")
        raise typer.Exit(2)
    if deck:
        return ByDeck(deck)
    if box is not None:
        return ByBox(box)
    return AllDue()


def _card_line(card: Card) -> str:
    due = card.next_review_at.strftime("%Y-%m-%d %H:%M")
    return (
        f"{card.id}  [box {card.box_level}] {card.difficulty.value:<8} "
        f"due {due}  {card.front}"
    )


def _not_found(kind: str, item_id: str) -> None:
    typer.secho(f"{kind} not found: {item_id}", fg="yellow")
    raise typer.Exit(1)


DeckOpt = Annotated[str | None, typer.Option("--deck", "-d", help="Limit to one deck id.")]
BoxOpt = Annotated[
    int | None,
    typer.Option("--box", "-b", min=MIN_BOX_LEVEL, max=MAX_BOX_LEVEL, help="Limit to one box."),
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


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
    ] = 1,
    data_path: Annotated[
        Path | None, typer.Option("--data", help="Store file (JSON backend).")
    ] = None,
    backend: Annotated[
        str | None, typer.Option(help="Storage backend: json, memory.")
    ] = None,
):
    """Global settings for mindcolony."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"verbose": verbose, "data_path": data_path, "backend": backend}


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    deck: DeckOpt = None,
    box: BoxOpt = None,
    json_output: JsonOpt = False,
):
    """List cards eligible for study now."""
    service = _service(ctx)
    cards = service.list_due_cards(_scope(deck, box))

    if json_output:
        typer.echo(_dump(cards))
        return

    if not cards:
        typer.secho("All caught up! Nothing due.", fg="green")
        return
    typer.echo(f"{len(cards)} cards due:")
    for card in cards:
        typer.echo(f"  {_card_line(card)}")


@app.command()
def study(
    ctx: typer.Context,
    deck: DeckOpt = None,
    box: BoxOpt = None,
    show_clues: Annotated[
        bool, typer.Option("--clues/--no-clues", help="Show clue balloons.")
    ] = True,
):
    """[bold green]Study[/bold green] the due cards interactively."""
    service = _service(ctx)
    handle = service.start_session(_scope(deck, box))

    if handle.is_empty:
        typer.secho("All caught up! No cards to review.", fg="green")
        return

    while True:
        while (card := service.current_card()) is not None:
            if not _study_card(service, card, show_clues):
                finished = service.end_session()
                if finished:
                    typer.echo(
                        f"Session ended: {finished.correct_answers}/"
                        f"{finished.cards_reviewed} correct."
                    )
                return

        session = service.store.current_session
        if session is not None:
            typer.secho("\nSession complete!", fg="green", bold=True)
            typer.echo(
                f"Cards: {session.cards_reviewed}  Correct: {session.correct_answers}  "
                f"Accuracy: {round(session.accuracy * 100)}%"
            )

        if typer.confirm("Study again?", default=False):
            service.restart_session()
            continue

        service.end_session()
        return


def _study_card(service: StudyService, card: Card, show_clues: bool) -> bool:
    """Walk one card. Returns False if the user quit."""
    answered, total = service.sessions.position
    deck = service.store.get_deck(card.deck_id)
    typer.echo(f"\n[{answered + 1}/{total}] {deck.name if deck else card.deck_id}")
    typer.secho(card.front, bold=True)

    clues = []
    if show_clues:
        clues = service.clues_for(card.id) or []
        for clue in clues:
            typer.secho(f"  ({clue.type.value}) {clue.text}", fg="cyan")

    started = time.monotonic()
    hints_used = 0
    while True:
        action = typer.prompt(
            "[enter] reveal, [h] hint, [q] quit", default="", show_default=False
        ).strip().lower()
        if action == "q":
            return False
        if action == "h":
            if hints_used < len(card.hints):
                typer.secho(f"  Hint: {card.hints[hints_used]}", fg="yellow")
                hints_used += 1
            else:
                typer.echo("  No more hints.")
            continue
        break

    typer.echo(f"Answer: {card.back}")
    correct = typer.confirm("Did you get it right?")
    updated = service.submit_review(
        card.id,
        correct,
        elapsed_ms=int((time.monotonic() - started) * 1000),
        hints_used=hints_used,
        clues_shown=len(clues),
    )
    if updated is not None:
        typer.echo(
            f"-> box {updated.box_level}, next review "
            f"{updated.next_review_at.strftime('%Y-%m-%d')}"
        )
    return True


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to record an answer for.")],
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ],
    hints: Annotated[int, typer.Option(min=0, help="Hints used for this card.")] = 0,
    elapsed_ms: Annotated[int, typer.Option(min=0, help="Time spent in ms.")] = 0,
):
    """Record a single answer outside an interactive session."""
    service = _service(ctx)
    updated = service.submit_review(card_id, correct, elapsed_ms=elapsed_ms, hints_used=hints)
    if updated is None:
        _not_found("Card", card_id)
    typer.echo(_card_line(updated))


@app.command()
def clues(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to rank clues for.")],
    show_all: Annotated[bool, typer.Option("--all", help="Show every clue.")] = False,
    json_output: JsonOpt = False,
):
    """Show ranked clues for a card."""
    service = _service(ctx)
    ranked = service.clues_for(card_id, limit=0 if show_all else None)
    if ranked is None:
        _not_found("Card", card_id)

    if json_output:
        typer.echo(_dump(ranked))
        return
    for clue in ranked:
        typer.echo(f"{clue.weight:.2f}  ({clue.type.value}) {clue.text}")
        if clue.expanded and show_all:
            typer.echo(f"      {clue.expanded}")


@app.command()
def stats(ctx: typer.Context, json_output: JsonOpt = False):
    """Show study progress."""
    report = _service(ctx).progress_report()

    if json_output:
        typer.echo(_dump(report))
        return

    typer.echo(
        f"Cards: {report.total_cards}  Mastered: {report.mastered_cards} "
        f"({report.mastery_rate}%)  Due today: {report.due_today}"
    )
    typer.echo(
        f"Reviews: {report.total_reviews}  Accuracy: {report.overall_accuracy}%  "
        f"Streak: {report.current_streak} days"
    )
    typer.echo(
        f"Today: {report.today_cards_reviewed} reviewed, {report.today_accuracy}% correct"
    )
    typer.echo("\nBoxes:")
    for level, count in report.box_counts.items():
        name, _desc, interval = BOX_TIERS[level]
        typer.echo(f"  {level}. {name:<10} {count:>4}  ({interval})")
    typer.echo("\nDifficulty:")
    for label, count in report.difficulty_breakdown.items():
        typer.echo(f"  {label:<9} {count:>4}")
    if report.decks:
        typer.echo("\nDecks:")
        for deck in report.decks:
            typer.echo(f"  {deck.name:<28} {deck.mastered}/{deck.total} ({deck.progress}%)")


@app.command()
def seed(ctx: typer.Context):
    """Load the sample decks into an empty store."""
    from mindcolony.application.seed import seed_store

    service = _service(ctx)
    inserted = seed_store(service.store, service.clock())
    if inserted:
        typer.secho(f"Seeded {inserted} sample cards.", fg="green")
    else:
        typer.secho("Store already has decks; nothing seeded.", fg="yellow")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the local HTTP server."""
    import uvicorn

    config = resolve_config()
    uvicorn.run(
        "mindcolony.server:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Deck subgroup
# ---------------------------------------------------------------------------


@deck_app.command("list")
def deck_list(ctx: typer.Context, json_output: JsonOpt = False):
    """List decks."""
    decks = list(_service(ctx).store.decks)
    if json_output:
        typer.echo(_dump(decks))
        return
    if not decks:
        typer.echo("No decks yet.")
        return
    for deck in decks:
        typer.echo(f"{deck.id}  {deck.name}  ({deck.card_count} cards)  {deck.description}")


@deck_app.command("add")
def deck_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Deck name.")],
    description: Annotated[str, typer.Option(help="Short description.")] = "",
    color: Annotated[str | None, typer.Option(help="Display color, e.g. #F59E0B.")] = None,
):
    """Create a deck."""
    deck = _service(ctx).store.add_deck(name, description=description, color=color)
    typer.secho(f"Created deck {deck.id} ({deck.name})", fg="green")


@deck_app.command("delete")
def deck_delete(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck to delete.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Skip the confirmation prompt.")
    ] = False,
):
    """Delete a deck and all of its cards."""
    store = _service(ctx).store
    deck = store.get_deck(deck_id)
    if deck is None:
        _not_found("Deck", deck_id)

    if not force and not typer.confirm(
        f"Delete '{deck.name}' and its {deck.card_count} cards?", default=False
    ):
        raise typer.Abort()

    store.delete_deck(deck_id)
    typer.secho(f"Deleted deck {deck_id}", fg="green")


# ---------------------------------------------------------------------------
# Card subgroup
# ---------------------------------------------------------------------------


@card_app.command("list")
def card_list(
    ctx: typer.Context,
    deck: DeckOpt = None,
    box: BoxOpt = None,
    json_output: JsonOpt = False,
):
    """List cards, optionally filtered by deck or box."""
    cards = list(_service(ctx).store.cards)
    if deck:
        cards = [c for c in cards if c.deck_id == deck]
    if box is not None:
        cards = [c for c in cards if c.box_level == box]

    if json_output:
        typer.echo(_dump(cards))
        return
    for card in cards:
        typer.echo(_card_line(card))


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    deck_id: Annotated[str, typer.Argument(help="Deck the card belongs to.")],
    front: Annotated[str, typer.Argument(help="Prompt text.")],
    back: Annotated[str, typer.Argument(help="Answer text.")],
    hint: Annotated[list[str] | None, typer.Option(help="Hint (repeatable).")] = None,
    tag: Annotated[list[str] | None, typer.Option(help="Tag (repeatable).")] = None,
):
    """Add a card to a deck."""
    card = _service(ctx).store.add_card(deck_id, front, back, hints=hint or (), tags=tag or ())
    if card is None:
        _not_found("Deck", deck_id)
    typer.secho(f"Created card {card.id}", fg="green")


@card_app.command("edit")
def card_edit(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to edit.")],
    front: Annotated[str | None, typer.Option(help="New prompt text.")] = None,
    back: Annotated[str | None, typer.Option(help="New answer text.")] = None,
    deck: Annotated[str | None, typer.Option(help="Move to another deck.")] = None,
):
    """Edit a card's content."""
    changes = {k: v for k, v in {"front": front, "back": back, "deck_id": deck}.items() if v}
    if not changes:
        typer.echo("Nothing to change.")
        return
    card = _service(ctx).store.update_card(card_id, **changes)
    if card is None:
        _not_found("Card", card_id)
    typer.echo(_card_line(card))


@card_app.command("delete")
def card_delete(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to delete.")],
):
    """Delete a card."""
    if not _service(ctx).store.delete_card(card_id):
        _not_found("Card", card_id)
    typer.secho(f"Deleted card {card_id}", fg="green")


@card_app.command("move")
def card_move(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to move.")],
    level: Annotated[
        int, typer.Argument(min=MIN_BOX_LEVEL, max=MAX_BOX_LEVEL, help="Target box.")
    ],
):
    """Move a card to another box."""
    card = _service(ctx).store.move_card_to_box(card_id, level)
    if card is None:
        _not_found("Card", card_id)
    typer.echo(_card_line(card))


# ---------------------------------------------------------------------------
# Session subgroup
# ---------------------------------------------------------------------------


@session_app.command("end")
def session_end(ctx: typer.Context):
    """Finalize the open session into history."""
    finished = _service(ctx).end_session()
    if finished is None:
        typer.secho("No open session.", fg="yellow")
        return
    typer.echo(
        f"Ended {finished.id}: {finished.cards_reviewed} reviewed, "
        f"{finished.correct_answers} correct, {finished.hints_used} hints"
    )


@session_app.command("abandon")
def session_abandon(ctx: typer.Context):
    """Discard the open session without recording it."""
    dropped = _service(ctx).abandon_session()
    if dropped is None:
        typer.secho("No open session.", fg="yellow")
        return
    typer.echo(f"Abandoned {dropped.id}")


@session_app.command("history")
def session_history(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option(min=1, help="Most recent N sessions.")] = 10,
    json_output: JsonOpt = False,
):
    """Show finished sessions, most recent last."""
    sessions = list(_service(ctx).store.sessions)[-limit:]
    if json_output:
        typer.echo(_dump(sessions))
        return
    if not sessions:
        typer.echo("No sessions yet.")
        return
    for s in sessions:
        typer.echo(
            f"{s.started_at.strftime('%Y-%m-%d %H:%M')}  {s.deck_id:<12} "
            f"{s.correct_answers}/{s.cards_reviewed} correct  {s.hints_used} hints"
        )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
