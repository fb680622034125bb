# tests/unit/test_session_service.py
import pytest

from chatform.models.conversation import ChatStatus
from chatform.services.session_service import (
    SessionLimitError,
    SessionNotFoundError,
    SessionService,
    TemplateNotFoundError,
)
from chatform.workflows.definitions import TEMPLATES


@pytest.fixture
def service():
    return SessionService(TEMPLATES, max_sessions=2)


@pytest.mark.asyncio
async def test_create_returns_a_settled_conversation(service):
    form = await service.create("greeting")
    assert form.status is ChatStatus.WAITING
    assert service.get(form.id) is form
    assert service.template_of(form.id) == "greeting"


@pytest.mark.asyncio
async def test_submit_goes_to_the_right_conversation(service):
    first = await service.create("greeting")
    second = await service.create("greeting")
    assert await service.submit(first.id, "Ada") is True
    assert first.values == {"name": ["Ada"]}
    assert second.values == {}


@pytest.mark.asyncio
async def test_unknown_template_and_session(service):
    with pytest.raises(TemplateNotFoundError):
        await service.create("nope")
    with pytest.raises(SessionNotFoundError):
        service.get("missing")
    with pytest.raises(SessionNotFoundError):
        service.discard("missing")


@pytest.mark.asyncio
async def test_session_limit(service):
    await service.create("greeting")
    form = await service.create("greeting")
    with pytest.raises(SessionLimitError):
        await service.create("greeting")

    service.discard(form.id)
    await service.create("greeting")


@pytest.mark.asyncio
async def test_close_all_forgets_everything(service):
    form = await service.create("greeting")
    service.close_all()
    with pytest.raises(SessionNotFoundError):
        service.get(form.id)


def test_template_names(service):
    assert service.template_names() == ["greeting", "newsletter_signup"]


@pytest.mark.asyncio
async def test_finished_conversations_free_their_slots(service):
    first = await service.create("greeting")
    second = await service.create("greeting")
    await service.submit(first.id, "Ada")
    await service.submit(second.id, "Grace")
    assert first.status is ChatStatus.COMPLETED

    third = await service.create("greeting")
    assert service.get(third.id) is third
    with pytest.raises(SessionNotFoundError):
        service.get(first.id)


@pytest.mark.asyncio
async def test_waiting_conversations_are_not_evicted(service):
    done = await service.create("greeting")
    await service.submit(done.id, "Ada")
    waiting = await service.create("greeting")

    await service.create("greeting")
    assert service.get(waiting.id) is waiting
    with pytest.raises(SessionLimitError):
        await service.create("greeting")


@pytest.mark.asyncio
async def test_failed_start_does_not_keep_a_slot():
    def broken(ctx):
        raise RuntimeError("boom")

    templates = {
        "broken": [{"if": {"condition": broken, "children": [{"output": {"text": "x"}}]}}],
        "greeting": TEMPLATES["greeting"],
    }
    service = SessionService(templates, max_sessions=1)

    with pytest.raises(RuntimeError, match="boom"):
        await service.create("broken")
    assert service._sessions == {}

    form = await service.create("greeting")
    assert form.status is ChatStatus.WAITING
