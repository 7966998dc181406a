# services/chat_widget.py

"""
AI assistant conversation state.

idle → awaiting_response → idle. The transcript lives in device-local
storage only; every request replays it in full to Gemini.
"""

import uuid
from collections import OrderedDict
from datetime import date
from threading import Lock
from typing import List, Optional

from core.config import settings
from core.local_store import LocalStore, CHAT_HISTORY_KEY
from core.logging_config import logger
from models.chat import ChatMessage
from models.enums import ChatState, MessageRole
from services.gemini_client import GeminiClient


SYSTEM_INSTRUCTION = """You are the knowledgeable and professional AI assistant for Aaditya Building Solution (ABS).

Company Profile:
- Name: Aaditya Building Solution (ABS)
- Leader: Vr. Arpit Agarwal (Chartered Civil Engineer, Authorised Structural Engineer, IBBI Registered Valuer, Govt. Approved Valuer).
- Experience: Over 20 years in surveying and valuation.
- Location: Kashipur, Uttarakhand, India. Head office at Santoshi Mata Mandir Wali Gali, Cheema Chauraha, Ramnagar Road.
- Contact: +91 98371 79179, vr.arpitagarwal@gmail.com.
- Hours: Mon-Sat 10:00 AM - 7:00 PM.

Services:
- Residential & Commercial Property Valuations (IBBI Registered).
- Building Surveys (structural health, defects).
- Land Surveys (digital mapping).
- Expert Witness services for legal disputes.
- Investment Advice.

Empanelment:
- Bank of Baroda, SBI, PNB, Canara Bank, Axis Bank, and many others.

Your Goal:
- Answer user inquiries about services, location, and valuations.
- Be polite, professional, and concise.
- If asked for a quote, encourage them to use the "Get a Quote" form or contact the phone number.
- Use the available tools (Google Search) if the user asks for current information, locations, or general knowledge not in your profile.
"""

WELCOME_TEXT = (
    "Hello! I'm the AI Assistant for Aaditya Building Solution. I can help answer questions "
    "about property surveys, valuations, and find relevant locations for you. "
    "How can I assist you today?"
)

NO_RESPONSE_TEXT = "I didn't get a response. Please try again."

ERROR_TEXT = (
    "I'm having trouble connecting to my knowledge base right now. "
    "Please try again or contact our office directly."
)

SUGGESTED_QUESTIONS = [
    "Where is your office located?",
    "Find property registration offices nearby",
    "Show me banks near me for valuation",
    "How much does a property valuation cost?",
    "What documents are needed?",
]


class ChatBusyError(Exception):
    """A message was submitted while a reply is still pending."""


def welcome_message() -> ChatMessage:
    return ChatMessage(id="welcome", role=MessageRole.model, text=WELCOME_TEXT)


def _new_id() -> str:
    return uuid.uuid4().hex


def _decode_transcript(raw) -> List[ChatMessage]:
    if not isinstance(raw, list):
        raise TypeError("chat history must be a list")
    return [ChatMessage.model_validate(m) for m in raw]


class ChatWidget:
    def __init__(self, store: LocalStore, client: GeminiClient, system_instruction: str = SYSTEM_INSTRUCTION):
        self.store = store
        self.client = client
        self.system_instruction = system_instruction
        self.state = ChatState.idle
        self._lock = Lock()
        # Bumped by clear()/close(); replies from an older generation are dropped
        self._generation = 0
        self.messages: List[ChatMessage] = store.load(
            CHAT_HISTORY_KEY,
            lambda: [welcome_message()],
            _decode_transcript,
        )

    def _persist(self):
        self.store.set(CHAT_HISTORY_KEY, [m.model_dump(mode="json") for m in self.messages])

    @property
    def is_busy(self) -> bool:
        return self.state == ChatState.awaiting_response

    def send(self, text: str) -> Optional[ChatMessage]:
        """
        Append the user's message, ask Gemini, append the reply.
        Returns the reply (or None for blank input or a discarded late reply).
        """
        text = (text or "").strip()
        if not text:
            return None

        with self._lock:
            if self.is_busy:
                raise ChatBusyError("A reply is still pending")

            self.messages.append(ChatMessage(id=_new_id(), role=MessageRole.user, text=text))
            self._persist()
            self.state = ChatState.awaiting_response
            generation = self._generation
            history = [m for m in self.messages if not m.is_error]

        try:
            reply = self.client.generate_reply(history, self.system_instruction)
            message = ChatMessage(
                id=_new_id(),
                role=MessageRole.model,
                text=reply.text or NO_RESPONSE_TEXT,
                grounding_chunks=reply.grounding_chunks or None,
            )
        except Exception as e:
            logger.error(f"Error generating response: {e}", exc_info=True)
            message = ChatMessage(id=_new_id(), role=MessageRole.model, text=ERROR_TEXT, is_error=True)

        with self._lock:
            self.state = ChatState.idle
            if generation != self._generation:
                logger.info("Discarding assistant reply for a cleared or closed conversation")
                return None
            self.messages.append(message)
            self._persist()

        return message

    def clear(self):
        with self._lock:
            self._generation += 1
            self.messages = [welcome_message()]
            self._persist()

    def close(self):
        with self._lock:
            self._generation += 1

    def export_text(self) -> str:
        return "\n\n".join(
            f"[{'AI Assistant' if m.role == MessageRole.model else 'User'}]: {m.text}"
            for m in self.messages
        )

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        return f"abs-chat-history-{(today or date.today()).isoformat()}.txt"


# ============================================================
# One widget per device, least recently used released first
# ============================================================

_widgets: "OrderedDict[str, ChatWidget]" = OrderedDict()
_widgets_lock = Lock()


def _evict_idle_widgets():
    """Release the oldest idle widgets once the cache is over its size."""
    excess = len(_widgets) - settings.CHAT_WIDGET_CACHE_SIZE
    if excess <= 0:
        return
    for device_id in [d for d, w in _widgets.items() if not w.is_busy][:excess]:
        _widgets.pop(device_id).close()


def get_chat_widget(device_id: str, client: GeminiClient) -> ChatWidget:
    with _widgets_lock:
        widget = _widgets.get(device_id)
        if widget is None:
            widget = ChatWidget(LocalStore.for_device(device_id), client)
            _widgets[device_id] = widget
        _widgets.move_to_end(device_id)
        _evict_idle_widgets()
        return widget


def close_chat_widget(device_id: str):
    with _widgets_lock:
        widget = _widgets.pop(device_id, None)
    if widget:
        widget.close()


def close_all_chat_widgets():
    with _widgets_lock:
        widgets = list(_widgets.values())
        _widgets.clear()
    for widget in widgets:
        widget.close()
