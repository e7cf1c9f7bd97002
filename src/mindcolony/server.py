import logging
import time
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from mindcolony.application.config import resolve_config
from mindcolony.application.factory import create_study_service
from mindcolony.application.study_service import StudyService
from mindcolony.consts import VERSION
from mindcolony.domain.constants import MAX_BOX_LEVEL, MIN_BOX_LEVEL
from mindcolony.domain.models import AllDue, ByBox, ByDeck, DueScope

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mindcolony.server")

_service: StudyService | None = None


def get_service() -> StudyService:
    """Process-wide study service, built from config on first use."""
    global _service
    if _service is None:
        _service = create_study_service(resolve_config())
    return _service


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"MindColony Server v{VERSION} starting up...")
    yield
    # Shutdown
    logger.info("MindColony Server shutting down...")


app = FastAPI(
    title="MindColony Server",
    description="Local study server for the MindColony flashcard front-end.",
    version=VERSION,
    lifespan=lifespan,
)


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


# ---------------------------------------------------------------------------
# Due set and sessions
# ---------------------------------------------------------------------------


class ScopeRequest(BaseModel):
    scope: Literal["all", "box", "deck"] = "all"
    level: int | None = Field(default=None, ge=MIN_BOX_LEVEL, le=MAX_BOX_LEVEL)
    deck_id: str | None = None

    def to_scope(self) -> DueScope:
        if self.scope == "box":
            if self.level is None:
                raise HTTPException(status_code=400, detail="scope 'box' needs 'level'")
            return ByBox(self.level)
        if self.scope == "deck":
            if not self.deck_id:
                raise HTTPException(status_code=400, detail="scope 'deck' needs 'deck_id'")
            return ByDeck(self.deck_id)
        return AllDue()


@app.get("/cards/due")
async def list_due_cards(
    scope: Literal["all", "box", "deck"] = "all",
    level: int | None = None,
    deck_id: str | None = None,
    service: StudyService = Depends(get_service),
):
    try:
        req = ScopeRequest(scope=scope, level=level, deck_id=deck_id)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False)) from None
    return service.list_due_cards(req.to_scope())


def _session_payload(service: StudyService) -> dict:
    handle = service.sessions.handle
    answered, total = service.sessions.position
    return {
        "state": service.session_state.value,
        "session": service.store.current_session,
        "card_ids": list(handle.card_ids) if handle else [],
        "answered": answered,
        "total": total,
        "current_card": service.current_card(),
    }


@app.post("/sessions/start")
async def start_session(req: ScopeRequest, service: StudyService = Depends(get_service)):
    service.start_session(req.to_scope())
    return _session_payload(service)


@app.get("/sessions/current")
async def current_session(service: StudyService = Depends(get_service)):
    return _session_payload(service)


@app.post("/sessions/restart")
async def restart_session(service: StudyService = Depends(get_service)):
    if service.restart_session() is None:
        raise HTTPException(status_code=409, detail="No session to restart")
    return _session_payload(service)


@app.post("/sessions/end")
async def end_session(service: StudyService = Depends(get_service)):
    finished = service.end_session()
    if finished is None:
        raise HTTPException(status_code=404, detail="No open session")
    return finished


@app.delete("/sessions/current")
async def abandon_session(service: StudyService = Depends(get_service)):
    dropped = service.abandon_session()
    return {"abandoned": dropped.id if dropped else None}


@app.get("/sessions")
async def session_history(service: StudyService = Depends(get_service)):
    return list(service.store.sessions)


class ReviewRequest(BaseModel):
    card_id: str
    correct: bool
    elapsed_ms: int = Field(default=0, ge=0)
    hints_used: int = Field(default=0, ge=0)
    clues_shown: int = Field(default=0, ge=0)


@app.post("/reviews")
async def submit_review(req: ReviewRequest, service: StudyService = Depends(get_service)):
    """
    Record an answer. Unknown cards are ignored and answered with `card: null`.
    """
    updated = service.submit_review(
        req.card_id,
        req.correct,
        elapsed_ms=req.elapsed_ms,
        hints_used=req.hints_used,
        clues_shown=req.clues_shown,
    )
    return {"card": updated, "session": _session_payload(service)}


# ---------------------------------------------------------------------------
# Clues
# ---------------------------------------------------------------------------


@app.get("/cards/{card_id}/clues")
async def get_clues(
    card_id: str,
    limit: int | None = None,
    service: StudyService = Depends(get_service),
):
    clues = service.clues_for(card_id, limit=limit)
    if clues is None:
        raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
    return clues


class ClueFeedbackRequest(BaseModel):
    card_id: str
    clue_id: str
    helpful: bool


@app.post("/clues/feedback", status_code=202)
async def clue_feedback(req: ClueFeedbackRequest, service: StudyService = Depends(get_service)):
    service.record_clue_feedback(req.card_id, req.clue_id, req.helpful)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Decks and cards
# ---------------------------------------------------------------------------


class DeckRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    color: str | None = None


class DeckUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    color: str | None = None


@app.get("/decks")
async def list_decks(service: StudyService = Depends(get_service)):
    return list(service.store.decks)


@app.post("/decks", status_code=201)
async def create_deck(req: DeckRequest, service: StudyService = Depends(get_service)):
    return service.store.add_deck(req.name, description=req.description, color=req.color)


@app.patch("/decks/{deck_id}")
async def update_deck(
    deck_id: str, req: DeckUpdateRequest, service: StudyService = Depends(get_service)
):
    deck = service.store.update_deck(deck_id, **req.model_dump(exclude_none=True))
    if deck is None:
        raise HTTPException(status_code=404, detail=f"Deck not found: {deck_id}")
    return deck


@app.delete("/decks/{deck_id}")
async def delete_deck(deck_id: str, service: StudyService = Depends(get_service)):
    if not service.store.delete_deck(deck_id):
        raise HTTPException(status_code=404, detail=f"Deck not found: {deck_id}")
    return {"ok": True}


@app.get("/decks/{deck_id}/cards")
async def deck_cards(deck_id: str, service: StudyService = Depends(get_service)):
    if service.store.get_deck(deck_id) is None:
        raise HTTPException(status_code=404, detail=f"Deck not found: {deck_id}")
    return service.store.cards_by_deck(deck_id)


class CardRequest(BaseModel):
    deck_id: str
    front: str = Field(min_length=1)
    back: str = Field(min_length=1)
    hints: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class CardUpdateRequest(BaseModel):
    front: str | None = Field(default=None, min_length=1)
    back: str | None = Field(default=None, min_length=1)
    deck_id: str | None = None
    hints: list[str] | None = None
    tags: list[str] | None = None


class BoxMoveRequest(BaseModel):
    level: int = Field(ge=MIN_BOX_LEVEL, le=MAX_BOX_LEVEL)


@app.post("/cards", status_code=201)
async def create_card(req: CardRequest, service: StudyService = Depends(get_service)):
    card = service.store.add_card(
        req.deck_id, req.front, req.back, hints=req.hints, tags=req.tags
    )
    if card is None:
        raise HTTPException(status_code=404, detail=f"Deck not found: {req.deck_id}")
    return card


@app.get("/cards/{card_id}")
async def get_card(card_id: str, service: StudyService = Depends(get_service)):
    card = service.store.get_card(card_id)
    if card is None:
        raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
    return card


@app.patch("/cards/{card_id}")
async def update_card(
    card_id: str, req: CardUpdateRequest, service: StudyService = Depends(get_service)
):
    card = service.store.update_card(card_id, **req.model_dump(exclude_none=True))
    if card is None:
        raise HTTPException(status_code=404, detail=f"Card or deck not found: {card_id}")
    return card


@app.delete("/cards/{card_id}")
async def delete_card(card_id: str, service: StudyService = Depends(get_service)):
    if not service.store.delete_card(card_id):
        raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
    return {"ok": True}


@app.post("/cards/{card_id}/box")
async def move_card(
    card_id: str, req: BoxMoveRequest, service: StudyService = Depends(get_service)
):
    card = service.store.move_card_to_box(card_id, req.level)
    if card is None:
        raise HTTPException(status_code=404, detail=f"Card not found: {card_id}")
    return card


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@app.get("/stats/progress")
async def progress(service: StudyService = Depends(get_service)):
    try:
        return service.progress_report()
    except Exception as e:
        logger.error(f"Progress report failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/stats/daily")
async def daily_stats(days: int | None = None, service: StudyService = Depends(get_service)):
    return service.progress.get_daily_stats(days)
