# /chatform/services/chat_form_service.py

import asyncio
import inspect
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from chatform.config.settings import settings
from chatform.models.conversation import (
    AnswerStore,
    ChatContext,
    ChatStatus,
    Message,
    Sender,
    Transcript,
)
from chatform.models.flow import ChatStep, ConditionBlock, InputBlock, OutputBlock, StepKind
from chatform.utils.metrics import (
    conversations_counter,
    rejected_submissions_counter,
    steps_executed_counter,
    validation_failures_counter,
)
from chatform.workflows.engine import (
    START_POSITION,
    Position,
    descend,
    exited_blocks,
    get_step,
    next_position,
)
from chatform.workflows.validator import load_template

logger = logging.getLogger(__name__)


async def invoke(fn: Callable[..., Any], *args: Any) -> Any:
    """Calls a template callback and awaits its result when it is awaitable."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ChatForm:
    """
    Drives one conversation through a chat form template.

    Construction validates the template and, inside a running event loop,
    immediately starts running steps from the first one. The conversation
    then alternates between auto-advancing (`active`) and waiting for an
    answer (`waiting`) until no step is left (`completed`).

    Every instance owns its own position, answers and transcript.
    """

    def __init__(
        self,
        template: Iterable[Any],
        *,
        on_complete: Optional[Callable[[ChatContext], Any]] = None,
        autostart: bool = True,
        wait_time_scale: Optional[float] = None,
        conversation_id: Optional[str] = None,
    ):
        self.template: List[ChatStep] = load_template(template)
        self.id = conversation_id or uuid.uuid4().hex
        self.on_complete = on_complete
        self.wait_time_scale = settings.wait_time_scale if wait_time_scale is None else wait_time_scale
        if self.wait_time_scale < 0:
            raise ValueError("wait_time_scale must be >= 0")

        self._position: Position = ()
        self._answers = AnswerStore()
        self._transcript = Transcript()
        self._status = ChatStatus.ACTIVE
        self._loop_iterations: Dict[Position, int] = {}
        self._task: Optional[asyncio.Task] = None
        self.context = ChatContext(self._answers)
        self.failed = False

        if autostart:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    "ChatForm(autostart=True) needs a running event loop; "
                    "pass autostart=False and `await form.start()` instead"
                ) from None
            self._task = loop.create_task(self.start())
            self._task.add_done_callback(self._retrieve_task_failure)

    # ---------------- Observable state ---------------- #

    @property
    def status(self) -> ChatStatus:
        return self._status

    @property
    def messages(self) -> List[Message]:
        return self._transcript.messages

    @property
    def values(self) -> Dict[str, List[str]]:
        return self._answers.snapshot()

    @property
    def position(self) -> Position:
        return self._position

    @property
    def input_disabled(self) -> bool:
        return self._status is not ChatStatus.WAITING

    def iterations(self, position: Position) -> int:
        """Number of times the `while` step at `position` has entered its body."""
        return self._loop_iterations.get(tuple(position), 0)

    # ---------------- Lifecycle ---------------- #

    async def start(self) -> None:
        if self._position:
            raise RuntimeError(f"Conversation {self.id} has already started")
        self._position = START_POSITION
        logger.info(f"Conversation {self.id} started with {len(self.template)} top-level steps.")
        try:
            await self._drive()
        except Exception:
            self._mark_failed()
            raise

    async def settled(self) -> None:
        """Waits for the auto-started run to reach its first suspension point."""
        if self._task is not None:
            await self._task

    def close(self) -> None:
        """Stops a pending auto-started run. Used when a host discards the conversation."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def submit(self, text: str) -> bool:
        """
        Feeds one answer to the input step the conversation is waiting on.

        Returns False without touching any state when the conversation is
        not waiting for input. Otherwise returns True once the conversation
        has reached its next suspension point.
        """
        if self._status is not ChatStatus.WAITING or self.failed:
            rejected_submissions_counter.inc()
            logger.warning(f"Conversation {self.id} rejected a submission while {self._status.value}.")
            return False

        # Leave WAITING before the first await so a concurrent submit is rejected.
        self._status = ChatStatus.ACTIVE
        self._transcript.append(Message(text=text, sender=Sender.USER))

        try:
            step = get_step(self._position, self.template)
            await self._accept_answer(step.input, text)
            await self._drive()
        except Exception:
            self._mark_failed()
            raise
        return True

    # ---------------- Drive loop ---------------- #

    async def _drive(self) -> None:
        while True:
            step = get_step(self._position, self.template)

            if step is None:
                await self._finish()
                return

            steps_executed_counter.labels(kind=step.kind.value).inc()

            if step.kind is StepKind.OUTPUT:
                await self._run_output(step.output)
                await self._move_to(next_position(self._position, self.template))
            elif step.kind is StepKind.INPUT:
                self._status = ChatStatus.WAITING
                logger.debug(f"Conversation {self.id} waiting for '{step.input.name}' at {list(self._position)}.")
                return
            else:
                await self._run_block(step)

    async def _run_output(self, block: OutputBlock) -> None:
        text = await self._resolve_text(block.text)
        self._transcript.append(Message(text=text, sender=Sender.BOT))

        tasks = []
        if block.complete is not None:
            tasks.append(asyncio.create_task(invoke(block.complete, self.context)))
        delay = block.wait * self.wait_time_scale / 1000
        if delay > 0:
            tasks.append(asyncio.create_task(asyncio.sleep(delay)))
        if not tasks:
            return

        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def _run_block(self, step: ChatStep) -> None:
        block: ConditionBlock = step.block
        if await invoke(block.condition, self.context):
            if step.kind is StepKind.WHILE:
                self._loop_iterations[self._position] = self._loop_iterations.get(self._position, 0) + 1
            self._position = descend(self._position)
            return
        await self._exit_block(step)

    async def _exit_block(self, step: ChatStep) -> None:
        """Leaves an `if` whose condition is false or a `while` whose loop is over."""
        if step.kind is StepKind.WHILE:
            count = self._loop_iterations.pop(self._position, 0)
            logger.debug(f"Conversation {self.id} left loop at {list(self._position)} after {count} iteration(s).")
            if count and step.while_.complete is not None:
                await invoke(step.while_.complete, self.context)
        await self._move_to(next_position(self._position, self.template))

    async def _move_to(self, position: Position) -> None:
        exited = exited_blocks(self._position, position, self.template)
        self._position = position
        for block_position in exited:
            block = get_step(block_position, self.template).if_
            if block.complete is not None:
                await invoke(block.complete, self.context)

    async def _accept_answer(self, block: InputBlock, text: str) -> None:
        for rule in block.validation:
            if rule.fn is None:
                continue
            if not await invoke(rule.fn, text, self.context):
                error_text = await self._resolve_text(rule.error_text)
                self._transcript.append(Message(text=error_text, sender=Sender.BOT))
                validation_failures_counter.inc()
                logger.info(f"Conversation {self.id} rejected an answer for '{block.name}'.")
                return

        self._answers.append(block.name, text)
        if block.complete is not None:
            await invoke(block.complete, self.context)
        await self._move_to(next_position(self._position, self.template))

    async def _resolve_text(self, source) -> str:
        if source.kind == "computed":
            value = await invoke(source.fn, self.context)
        else:
            value = source.value
        return "" if value is None else str(value)

    async def _finish(self) -> None:
        self._status = ChatStatus.COMPLETED
        conversations_counter.labels(outcome="completed").inc()
        logger.info(f"Conversation {self.id} completed with answers for {sorted(self._answers.snapshot())}.")
        if self.on_complete is not None:
            await invoke(self.on_complete, self.context)

    # ---------------- Failure handling ---------------- #

    def _mark_failed(self) -> None:
        self.failed = True
        conversations_counter.labels(outcome="failed").inc()
        logger.error(f"Conversation {self.id} stopped at {list(self._position)}: a template callback failed.", exc_info=True)

    def _retrieve_task_failure(self, task: asyncio.Task) -> None:
        # Marks the exception as retrieved; it was already logged by start().
        if not task.cancelled():
            task.exception()
