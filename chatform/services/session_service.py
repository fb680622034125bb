# /chatform/services/session_service.py

import logging
from typing import Dict, List, Optional

from chatform.config.settings import settings
from chatform.models.conversation import ChatStatus
from chatform.services.chat_form_service import ChatForm
from chatform.utils.metrics import active_sessions_gauge
from chatform.workflows.definitions import TEMPLATES, TemplateDefinition

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    pass


class TemplateNotFoundError(KeyError):
    pass


class SessionLimitError(RuntimeError):
    pass


class SessionService:
    """
    Keeps live conversations in memory, keyed by conversation id.

    Nothing is persisted: a conversation lives until it is discarded or the
    process stops. Completed and failed conversations stay readable but give
    up their slot once the session limit is reached.
    """

    def __init__(self, templates: Dict[str, TemplateDefinition], max_sessions: int):
        self._templates = templates
        self._max_sessions = max_sessions
        self._sessions: Dict[str, ChatForm] = {}
        self._template_names: Dict[str, str] = {}
        logger.info("SessionService initialized.")

    def template_names(self) -> List[str]:
        return sorted(self._templates)

    async def create(self, template_name: str) -> ChatForm:
        """Starts a conversation and returns it once it first suspends or completes."""
        if template_name not in self._templates:
            raise TemplateNotFoundError(template_name)
        if len(self._sessions) >= self._max_sessions:
            self._evict_finished()
        if len(self._sessions) >= self._max_sessions:
            raise SessionLimitError(f"Session limit of {self._max_sessions} reached")

        form = ChatForm(self._templates[template_name])
        self._sessions[form.id] = form
        self._template_names[form.id] = template_name
        active_sessions_gauge.set(len(self._sessions))
        logger.info(f"Created conversation {form.id} from template '{template_name}'.")

        try:
            await form.settled()
        except BaseException:
            # The caller never learns the id, so the slot must not outlive the failure.
            self._forget(form.id)
            raise
        return form

    def _forget(self, conversation_id: str) -> Optional[ChatForm]:
        form = self._sessions.pop(conversation_id, None)
        self._template_names.pop(conversation_id, None)
        active_sessions_gauge.set(len(self._sessions))
        return form

    def _evict_finished(self) -> None:
        """Frees the slots of completed and failed conversations."""
        finished = [
            conversation_id for conversation_id, form in self._sessions.items()
            if form.failed or form.status is ChatStatus.COMPLETED
        ]
        for conversation_id in finished:
            self._forget(conversation_id)
        if finished:
            logger.info(f"Evicted {len(finished)} finished conversations to make room.")

    def get(self, conversation_id: str) -> ChatForm:
        form = self._sessions.get(conversation_id)
        if form is None:
            raise SessionNotFoundError(conversation_id)
        return form

    def template_of(self, conversation_id: str) -> Optional[str]:
        return self._template_names.get(conversation_id)

    async def submit(self, conversation_id: str, text: str) -> bool:
        return await self.get(conversation_id).submit(text)

    def discard(self, conversation_id: str) -> None:
        form = self._forget(conversation_id)
        if form is None:
            raise SessionNotFoundError(conversation_id)
        form.close()
        logger.info(f"Discarded conversation {conversation_id}.")

    def close_all(self) -> None:
        for form in self._sessions.values():
            form.close()
        logger.info(f"Closed {len(self._sessions)} conversations.")
        self._sessions.clear()
        self._template_names.clear()
        active_sessions_gauge.set(0)


# Globally accessible instance
session_service = SessionService(TEMPLATES, settings.max_sessions)
