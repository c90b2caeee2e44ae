from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Any, Literal

import anyio
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Path, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from adherence_core import (
    AdherenceLedger,
    InvalidInput,
    PrivacyGate,
    RequestContext,
    SymptomJournal,
)
from copilot_settings import Settings
from copilot_tools import SpeechClient, UpstreamUnavailable
from records import MAX_RECORD_ID, MIN_RECORD_ID, RecordStore, StoreSelector

logger = logging.getLogger(__name__)

RecordId = Annotated[int, Path(ge=MIN_RECORD_ID, le=MAX_RECORD_ID)]


class CopilotApp:
    """Everything a request handler needs, built once per process."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.selector = StoreSelector(
            db_path=settings.db_path,
            mode=settings.storage_mode,
            seed_demo=settings.seed_demo,
        )
        self.gate = PrivacyGate()
        self.ledger = AdherenceLedger(self.gate)
        self.journal = SymptomJournal(self.gate)
        self.speech = SpeechClient(
            api_key=settings.elevenlabs_api_key,
            base_url=settings.elevenlabs_base_url,
            timeout_seconds=settings.tts_timeout_seconds,
        )

    @property
    def store(self) -> RecordStore:
        return self.selector.get()


class MedicationPayload(BaseModel):
    name: str = Field(min_length=1)
    dosage: str | None = None
    frequency: str | None = None
    time: str | None = None


class DoseLogPayload(BaseModel):
    status: Literal["taken", "skipped", "undo"] | None = None


class SymptomAnalyzePayload(BaseModel):
    symptom: str = Field(min_length=1)
    timestamp: str | None = None
    severity: int | None = Field(default=None, ge=0, le=10)


class SymptomFollowUpPayload(BaseModel):
    question: str | None = None
    answer: str
    symptomId: int | None = None


class SpeakPayload(BaseModel):
    text: str = Field(min_length=1)
    voice: str | None = None


def get_container(request: Request) -> CopilotApp:
    return request.app.state.container


def get_store(container: CopilotApp = Depends(get_container)) -> RecordStore:
    return container.store


def get_request_context(x_privacy_mode: str | None = Header(default=None)) -> RequestContext:
    return RequestContext.from_header(x_privacy_mode)


router = APIRouter()


@router.get("/health")
def health(store: RecordStore = Depends(get_store)):
    return {
        "status": "ok",
        "message": "Chronic Disease Copilot API is running",
        "storage": store.kind,
    }


@router.get("/medications")
def list_medications(store: RecordStore = Depends(get_store)):
    return [med.as_dict() for med in store.list_medications()]


@router.post("/medications")
def add_medication(payload: MedicationPayload, store: RecordStore = Depends(get_store)):
    # Medication edits are persisted even in privacy mode.
    medication_id = store.insert_medication(payload.name, payload.dosage, payload.frequency, payload.time)
    return {"id": medication_id, **payload.model_dump()}


@router.delete("/medications/{medication_id}")
def remove_medication(medication_id: RecordId, store: RecordStore = Depends(get_store)):
    removed = store.delete_medication(medication_id)
    if not removed:
        logger.debug("Delete for unknown medication %s treated as success", medication_id)
    return {"success": True}


@router.get("/adherence")
def adherence_today(container: CopilotApp = Depends(get_container), store: RecordStore = Depends(get_store)):
    return container.ledger.logs_for_today(store)


@router.post("/medications/{medication_id}/log")
def log_dose(
    medication_id: RecordId,
    payload: DoseLogPayload | None = None,
    container: CopilotApp = Depends(get_container),
    store: RecordStore = Depends(get_store),
    ctx: RequestContext = Depends(get_request_context),
):
    status = payload.status if payload else None
    try:
        result = container.ledger.log_dose(store, ctx, medication_id, status)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return result.as_response()


@router.get("/symptoms")
def recent_symptoms(container: CopilotApp = Depends(get_container), store: RecordStore = Depends(get_store)):
    try:
        return container.journal.recent(store)
    except Exception:
        logger.exception("Error fetching symptoms")
        return []


@router.post("/symptoms/analyze")
def analyze_symptom(
    payload: SymptomAnalyzePayload,
    container: CopilotApp = Depends(get_container),
    store: RecordStore = Depends(get_store),
    ctx: RequestContext = Depends(get_request_context),
):
    try:
        return container.journal.analyze(
            store,
            ctx,
            symptom=payload.symptom,
            timestamp=payload.timestamp,
            severity=payload.severity,
        )
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/symptoms/patterns")
def symptom_patterns(container: CopilotApp = Depends(get_container), store: RecordStore = Depends(get_store)):
    try:
        return container.journal.patterns(store)
    except Exception:
        logger.exception("Error detecting symptom patterns")
        return []


@router.post("/symptoms/follow-up")
def symptom_follow_up(payload: SymptomFollowUpPayload, container: CopilotApp = Depends(get_container)):
    return container.journal.follow_up(payload.answer)


@router.post("/voice/speak")
def voice_speak(payload: SpeakPayload, container: CopilotApp = Depends(get_container)) -> dict[str, Any]:
    try:
        return container.speech.speak(payload.text, payload.voice)
    except UpstreamUnavailable as exc:
        raise HTTPException(status_code=502, detail="Voice service is unavailable. Try again later.") from exc


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    container = CopilotApp(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = await anyio.to_thread.run_sync(container.selector.get)
        logger.info("Serving with %s record store", store.kind)
        yield

    app = FastAPI(title="Chronic Disease Copilot Backend", lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
