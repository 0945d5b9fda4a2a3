"""Text-to-speech providers.

OpenAITTSProvider renders speaker turns as 24 kHz PCM and returns WAV.  The
module also owns the voice catalogue and the default voice ids.
"""

from src.providers.tts.openai_tts_provider import OpenAITTSProvider

__all__ = ["OpenAITTSProvider"]
