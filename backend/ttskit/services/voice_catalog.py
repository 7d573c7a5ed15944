from __future__ import annotations

from typing import List, Optional

import httpx
from pydantic import ValidationError

from ttskit import metrics as app_metrics
from ttskit.config import settings
from ttskit.errors import DecodeError, RequestError
from ttskit.logging_utils import get_logger
from ttskit.models import Voice, VoiceCatalog


logger = get_logger(__name__)

GOOGLE_VOICES_ENDPOINT = "https://texttospeech.googleapis.com/v1"


async def _fetch_catalog(
    client: httpx.AsyncClient, url: str, api_key: str
) -> httpx.Response:
    return await client.get(url, params={"key": api_key})


async def list_voices(
    api_key: str,
    language: Optional[str] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    endpoint: str = GOOGLE_VOICES_ENDPOINT,
) -> List[Voice]:
    """Fetch the provider's voice catalog.

    With `language` set, only voices whose language codes contain it are
    returned, in catalog order. Failures are logged and re-raised; an
    unreachable catalog is never reported as an empty one.
    """
    url = f"{endpoint.rstrip('/')}/voices"
    try:
        try:
            if client is not None:
                response = await _fetch_catalog(client, url, api_key)
            else:
                async with httpx.AsyncClient(
                    timeout=settings.http_timeout_seconds
                ) as own_client:
                    response = await _fetch_catalog(own_client, url, api_key)
        except httpx.HTTPError as exc:
            raise RequestError(f"Voice catalog request failed: {exc}") from exc

        if not response.is_success:
            raise RequestError(
                f"Voice catalog request failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            catalog = VoiceCatalog.model_validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(f"Voice catalog payload is malformed: {exc}") from exc
    except (RequestError, DecodeError) as exc:
        app_metrics.record_voice_catalog_request("failed")
        logger.error("Failed to list voices: %s", exc)
        raise

    app_metrics.record_voice_catalog_request("ok")
    voices = catalog.voices
    if language:
        voices = [v for v in voices if v.supports(language)]
    logger.info(
        "Voice catalog returned %d voices (language=%s, total=%d)",
        len(voices),
        language,
        len(catalog.voices),
    )
    return voices
