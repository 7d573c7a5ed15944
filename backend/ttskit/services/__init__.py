from .voice_catalog import GOOGLE_VOICES_ENDPOINT, list_voices

__all__ = ["GOOGLE_VOICES_ENDPOINT", "list_voices"]
