# /chatform/models/api.py

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from chatform.models.conversation import ChatStatus, Message

# Pydantic models for the HTTP adapter's requests and responses.


class StartConversationRequest(BaseModel):
    template: str = Field(..., min_length=1, max_length=100)


class SubmitMessageRequest(BaseModel):
    text: str = Field(..., max_length=4096)


class ConversationState(BaseModel):
    id: str
    template: Optional[str] = None
    status: ChatStatus
    input_disabled: bool
    failed: bool = False
    messages: List[Message] = []
    values: Dict[str, List[str]] = {}


class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Dict] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str
