# models/chat.py

from typing import List, Optional
from pydantic import BaseModel

from models.enums import MessageRole


class GroundingSource(BaseModel):
    uri: Optional[str] = None
    title: Optional[str] = None


class GroundingChunk(BaseModel):
    """A citation returned with an answer; web search or a map place."""
    web: Optional[GroundingSource] = None
    maps: Optional[GroundingSource] = None


class ChatMessage(BaseModel):
    id: str
    role: MessageRole
    text: str
    is_error: bool = False
    grounding_chunks: Optional[List[GroundingChunk]] = None

    def citations(self) -> List[dict]:
        """Links worth rendering: sources with both a uri and a title."""
        links = []
        for chunk in self.grounding_chunks or []:
            if chunk.maps and chunk.maps.uri and chunk.maps.title:
                links.append({"kind": "maps", "uri": chunk.maps.uri, "title": chunk.maps.title})
            if chunk.web and chunk.web.uri and chunk.web.title:
                links.append({"kind": "web", "uri": chunk.web.uri, "title": chunk.web.title})
        return links

    def render(self) -> dict:
        data = self.model_dump(mode="json")
        data["citations"] = self.citations()
        return data


class SendMessageRequest(BaseModel):
    text: str
