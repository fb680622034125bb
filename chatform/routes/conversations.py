# /chatform/routes/conversations.py
from fastapi import APIRouter, HTTPException, status
import logging

from chatform.config import strings
from chatform.config.settings import settings
from chatform.models.api import (
    APIResponse,
    ConversationState,
    StartConversationRequest,
    SubmitMessageRequest,
)
from chatform.services.chat_form_service import ChatForm
from chatform.services.session_service import (
    SessionLimitError,
    SessionNotFoundError,
    TemplateNotFoundError,
    session_service,
)
from chatform.workflows.validator import TemplateConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/conversations",
    tags=["Conversations"],
)


def _state(form: ChatForm) -> dict:
    return ConversationState(
        id=form.id,
        template=session_service.template_of(form.id),
        status=form.status,
        input_disabled=form.input_disabled,
        failed=form.failed,
        messages=form.messages,
        values=form.values,
    ).model_dump(mode="json")


def _get_or_404(conversation_id: str) -> ChatForm:
    try:
        return session_service.get(conversation_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=strings.CONVERSATION_NOT_FOUND)


@router.post("/", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def start_conversation(request: StartConversationRequest):
    """Start a conversation from a registered template and return its first state."""
    try:
        form = await session_service.create(request.template)
    except TemplateNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=strings.TEMPLATE_NOT_FOUND)
    except SessionLimitError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=strings.SESSION_LIMIT_REACHED)
    except TemplateConfigurationError as e:
        logger.error(f"Template '{request.template}' is misconfigured: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception:
        logger.error(f"Conversation from template '{request.template}' failed to start.", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=strings.CALLBACK_FAILED)

    return APIResponse(
        success=True,
        message="Conversation started",
        data=_state(form),
        version=settings.api_version
    )


@router.get("/{conversation_id}", response_model=APIResponse)
async def get_conversation(conversation_id: str):
    """Current transcript, status and answers of a conversation."""
    form = _get_or_404(conversation_id)
    return APIResponse(
        success=True,
        message="Conversation retrieved",
        data=_state(form),
        version=settings.api_version
    )


@router.post("/{conversation_id}/messages", response_model=APIResponse)
async def submit_message(conversation_id: str, request: SubmitMessageRequest):
    """Submit the user's answer to the input step the conversation is waiting on."""
    form = _get_or_404(conversation_id)
    try:
        accepted = await form.submit(request.text)
    except Exception:
        logger.error(f"Conversation {conversation_id} failed while processing a submission.", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=strings.CALLBACK_FAILED)

    if not accepted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=strings.NOT_WAITING_FOR_INPUT)

    return APIResponse(
        success=True,
        message="Message submitted",
        data=_state(form),
        version=settings.api_version
    )


@router.delete("/{conversation_id}", response_model=APIResponse)
async def discard_conversation(conversation_id: str):
    """Drop a conversation from memory."""
    try:
        session_service.discard(conversation_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=strings.CONVERSATION_NOT_FOUND)
    return APIResponse(
        success=True,
        message="Conversation discarded",
        data={"id": conversation_id},
        version=settings.api_version
    )
