"""Google Gemini client for the website assistant."""

from dataclasses import dataclass, field
from typing import List, Optional

from google import genai
from google.genai import types

from core.config import settings
from core.logging_config import logger
from models.chat import ChatMessage, GroundingChunk, GroundingSource


class GeminiError(Exception):
    """Base exception for all Gemini-related errors."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GeminiNotConfiguredError(GeminiError):
    """Raised when no API key is configured."""


@dataclass
class ChatReply:
    text: Optional[str]
    grounding_chunks: List[GroundingChunk] = field(default_factory=list)


def _source(raw) -> Optional[GroundingSource]:
    if raw is None:
        return None
    return GroundingSource(uri=getattr(raw, "uri", None), title=getattr(raw, "title", None))


def extract_grounding(response) -> List[GroundingChunk]:
    """Pull web/maps citations off the first candidate, if any."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    raw_chunks = getattr(metadata, "grounding_chunks", None) or []

    chunks = []
    for raw in raw_chunks:
        chunk = GroundingChunk(
            web=_source(getattr(raw, "web", None)),
            maps=_source(getattr(raw, "maps", None)),
        )
        if chunk.web or chunk.maps:
            chunks.append(chunk)
    return chunks


class GeminiClient:
    """Sends a full transcript plus a system instruction in one request."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        enable_maps: Optional[bool] = None,
    ) -> None:
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL
        self.enable_maps = settings.GEMINI_ENABLE_MAPS if enable_maps is None else enable_maps
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise GeminiNotConfiguredError("GEMINI_API_KEY is not set")
            try:
                self._client = genai.Client(api_key=self.api_key)
                logger.info("Gemini client initialized")
            except Exception as e:
                logger.error(f"Failed to initialize Gemini client: {e}")
                raise GeminiError(f"Failed to authenticate: {e}")
        return self._client

    def _tools(self) -> List[types.Tool]:
        tools = [types.Tool(google_search=types.GoogleSearch())]
        if self.enable_maps:
            tools.append(types.Tool(google_maps=types.GoogleMaps()))
        return tools

    @staticmethod
    def build_contents(history: List[ChatMessage]) -> List[types.Content]:
        return [
            types.Content(role=m.role.value, parts=[types.Part(text=m.text)])
            for m in history
        ]

    def generate_reply(self, history: List[ChatMessage], system_instruction: str) -> ChatReply:
        """
        Raises:
            GeminiError: for configuration or API failures
        """
        client = self._get_client()

        try:
            response = client.models.generate_content(
                model=self.model_name,
                contents=self.build_contents(history),
                config=types.GenerateContentConfig(
                    system_instruction=system_instruction,
                    tools=self._tools(),
                ),
            )
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise GeminiError(f"Content generation failed: {e}")

        return ChatReply(text=response.text, grounding_chunks=extract_grounding(response))


_gemini_client: Optional[GeminiClient] = None


def get_gemini_client() -> GeminiClient:
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = GeminiClient()
    return _gemini_client
