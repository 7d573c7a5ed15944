from __future__ import annotations

import asyncio
from typing import Optional, Set

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ttskit import container
from ttskit.config import settings
from ttskit.errors import ConfigurationError, DecodeError, RequestError
from ttskit.logging_utils import get_logger
from ttskit.models import (
    BackendsResponse,
    HealthResponse,
    SpeechAcceptedResponse,
    SpeechRequest,
    VoicesResponse,
)
from ttskit.providers import TTSService, backend_names
from ttskit.services import list_voices


logger = get_logger(__name__)
router = APIRouter()

# Strong references to utterances scheduled from HTTP requests.
_background_utterances: Set["asyncio.Task[object]"] = set()


def _speech_service() -> TTSService:
    try:
        return container.get_speech_service()
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _log_utterance_result(task: "asyncio.Task[object]") -> None:
    _background_utterances.discard(task)
    if task.cancelled():
        logger.info("Background utterance cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Background utterance failed: %s", exc)
    else:
        logger.info("Background utterance finished: %s", task.result())


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok")


@router.get("/metrics")
async def metrics() -> PlainTextResponse:
    payload = generate_latest()
    return PlainTextResponse(payload, media_type=CONTENT_TYPE_LATEST)


@router.get("/v1/backends", response_model=BackendsResponse)
async def get_backends() -> BackendsResponse:
    service = _speech_service()
    return BackendsResponse(backends=backend_names(), active=service.name)


@router.get("/v1/voices", response_model=VoicesResponse)
async def get_voices(language: Optional[str] = Query(None)) -> VoicesResponse:
    api_key = settings.google_api_key
    if not api_key:
        raise HTTPException(
            status_code=400,
            detail="Voice catalog requires GOOGLE_API_KEY or TTS_API_KEY",
        )
    try:
        voices = await list_voices(api_key, language)
    except (RequestError, DecodeError) as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return VoicesResponse(voices=voices)


@router.post(
    "/v1/speech",
    response_model=SpeechAcceptedResponse,
    status_code=202,
)
async def speak(req: SpeechRequest) -> SpeechAcceptedResponse:
    """Schedule an utterance on the configured backend.

    The request returns once the utterance is queued; a newer request or
    ``POST /v1/speech/stop`` supersedes it.
    """
    service = _speech_service()
    try:
        options = req.to_options()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    task = asyncio.create_task(service.speak(req.text, options))
    _background_utterances.add(task)
    task.add_done_callback(_log_utterance_result)
    return SpeechAcceptedResponse(backend=service.name)


@router.post("/v1/speech/stop", status_code=204)
async def stop_speech() -> Response:
    _speech_service().stop()
    return Response(status_code=204)
