from __future__ import annotations

import argparse
import asyncio

from .config import settings
from .errors import TTSError
from .logging_utils import get_logger
from .models import BoundaryEvent, SynthesisOptions
from .providers import LocalEngineService, ServiceParams, backend_names, create_service
from .services import list_voices


logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ttskit CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    speak = sub.add_parser("speak", help="Speak text through a backend")
    speak.add_argument("--text", required=True, help="Text to speak")
    speak.add_argument(
        "--backend",
        default=settings.tts_backend,
        help=f"Backend name ({', '.join(backend_names())})",
    )
    speak.add_argument("--api-key", default=settings.tts_api_key, help="Provider credential")
    speak.add_argument("--region", default=settings.tts_region, help="Azure region")
    speak.add_argument("--endpoint", default=settings.tts_endpoint, help="Override endpoint URL")
    speak.add_argument("--lang", default=None, help="BCP-47 language tag")
    speak.add_argument("--voice", default=None, help="Voice name (backend-specific)")
    speak.add_argument("--rate", type=float, default=None, help="Rate multiplier")
    speak.add_argument("--pitch", type=float, default=None, help="Pitch multiplier")
    speak.add_argument("--volume", type=float, default=None, help="Volume in [0, 1]")

    voices = sub.add_parser("voices", help="List available voices")
    voices.add_argument("--api-key", default=settings.google_api_key, help="Catalog credential")
    voices.add_argument("--language", default=None, help="Only voices for this language")
    voices.add_argument(
        "--local",
        action="store_true",
        help="List voices installed for the local engine instead",
    )
    return parser


async def _speak(args: argparse.Namespace) -> None:
    service = create_service(
        args.backend,
        ServiceParams(api_key=args.api_key, region=args.region, endpoint=args.endpoint),
    )

    def on_boundary(event: BoundaryEvent) -> None:
        logger.debug("%s boundary at char %d", event.name, event.char_index)

    service.on_start = lambda: logger.info("Speaking via %s", service.name)
    service.on_boundary = on_boundary
    options = SynthesisOptions(
        lang=args.lang,
        pitch=args.pitch,
        rate=args.rate,
        volume=args.volume,
        voice=args.voice,
    )
    outcome = await service.speak(args.text, options)
    logger.info("Utterance %s", outcome.value)


async def _voices(args: argparse.Namespace) -> None:
    if args.local:
        voices = await LocalEngineService().list_voices()
        if args.language:
            voices = [v for v in voices if v.supports(args.language)]
    else:
        if not args.api_key:
            raise SystemExit("voices: --api-key (or GOOGLE_API_KEY) is required")
        voices = await list_voices(args.api_key, args.language)
    for voice in voices:
        print(f"{voice.name}\t{','.join(voice.language_codes)}\t{voice.ssml_gender}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    handler = _speak if args.command == "speak" else _voices
    try:
        asyncio.run(handler(args))
    except (TTSError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
