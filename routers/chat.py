# routers/chat.py

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from core.config import settings
from core.rate_limiter import require_rate_limit
from core.site_config import ConfigStore
from dependencies.auth import get_config_store, get_device_id
from models.chat import SendMessageRequest
from services.chat_widget import (
    SUGGESTED_QUESTIONS,
    ChatBusyError,
    ChatWidget,
    get_chat_widget,
)
from services.gemini_client import get_gemini_client


def require_ai_enabled(config: ConfigStore = Depends(get_config_store)):
    if not config.model().features.enable_ai:
        raise HTTPException(404, "AI assistant is disabled")


def get_widget(device_id: str = Depends(get_device_id)) -> ChatWidget:
    return get_chat_widget(device_id, get_gemini_client())


router = APIRouter(
    prefix="/chat",
    tags=["AI Assistant"],
    dependencies=[Depends(require_ai_enabled)],
)


def _transcript(widget: ChatWidget) -> dict:
    return {
        "state": widget.state.value,
        "messages": [m.render() for m in widget.messages],
    }


@router.get("/messages", summary="Conversation transcript for this device")
def read_messages(widget: ChatWidget = Depends(get_widget)):
    return _transcript(widget)


@router.post("/messages", summary="Send a message to the assistant")
def send_message(
    payload: SendMessageRequest,
    request: Request,
    device_id: str = Depends(get_device_id),
    widget: ChatWidget = Depends(get_widget),
):
    require_rate_limit(request, f"chat:{device_id}", max_requests=settings.CHAT_RATE_LIMIT, window_seconds=60)

    try:
        reply = widget.send(payload.text)
    except ChatBusyError as e:
        raise HTTPException(409, str(e))

    result = _transcript(widget)
    result["reply"] = reply.render() if reply else None
    return result


@router.delete("/messages", summary="Start a new conversation")
def clear_messages(widget: ChatWidget = Depends(get_widget)):
    widget.clear()
    return _transcript(widget)


@router.get("/export", response_class=PlainTextResponse, summary="Download the transcript")
def export_transcript(widget: ChatWidget = Depends(get_widget)):
    return PlainTextResponse(
        widget.export_text(),
        headers={"Content-Disposition": f'attachment; filename="{widget.export_filename()}"'},
    )


@router.get("/suggestions", summary="Suggested opening questions")
def read_suggestions():
    return {"suggestions": SUGGESTED_QUESTIONS}
