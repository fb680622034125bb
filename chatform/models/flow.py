# /chatform/models/flow.py

from enum import Enum
from typing import Annotated, Any, Callable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StepKind(str, Enum):
    OUTPUT = "output"
    INPUT = "input"
    IF = "if"
    WHILE = "while"


BLOCK_KINDS = (StepKind.IF, StepKind.WHILE)


class LiteralText(BaseModel):
    """Text that is shown exactly as written."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    value: str = ""


class ComputedText(BaseModel):
    """Text produced by calling `fn(context)`; the result may be awaitable."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["computed"] = "computed"
    fn: Callable[..., Any]


TextSource = Annotated[Union[LiteralText, ComputedText], Field(discriminator="kind")]


def coerce_text_source(value: Any) -> Any:
    """Turns a plain string or a callable into the matching text source."""
    if isinstance(value, (LiteralText, ComputedText, dict)):
        return value
    if callable(value):
        return ComputedText(fn=value)
    if value is None:
        return LiteralText()
    return LiteralText(value=str(value))


class ValidationRule(BaseModel):
    """
    A single check applied to a submitted answer.

    `fn(text, context)` returns a truthy value when the answer is acceptable.
    A rule without `fn` never fails.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    fn: Optional[Callable[..., Any]] = Field(default=None, description="Predicate (text, context) -> bool")
    error_text: TextSource = Field(alias="errorText", description="Bot reply shown when the predicate fails")

    @field_validator("error_text", mode="before")
    @classmethod
    def normalize_error_text(cls, v):
        return coerce_text_source(v)


class OutputBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    text: TextSource = Field(default_factory=LiteralText, description="Bot message text")
    wait: int = Field(default=0, ge=0, description="Pause after the message, in milliseconds")
    complete: Optional[Callable[..., Any]] = Field(default=None, description="Hook run alongside the wait")

    @field_validator("text", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text_source(v)


class InputBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["text"] = Field(default="text", description="Kind of input expected from the user")
    name: str = Field(..., min_length=1, description="Answer name the submitted text is stored under")
    validation: List[ValidationRule] = Field(default_factory=list, description="Rules checked in order")
    complete: Optional[Callable[..., Any]] = Field(default=None, description="Hook run after a valid answer is stored")


class ConditionBlock(BaseModel):
    """Body of an `if` or `while` step."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    condition: Callable[..., Any] = Field(..., description="Predicate (context) -> bool")
    children: List["ChatStep"] = Field(default_factory=list, description="Steps run while the condition holds")
    complete: Optional[Callable[..., Any]] = Field(default=None, description="Hook run when control leaves the block")


class ChatStep(BaseModel):
    """
    One node of a chat form template.

    Exactly one of `output`, `input`, `if` or `while` is expected to be set;
    the template validator enforces it before a conversation starts.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    output: Optional[OutputBlock] = None
    input: Optional[InputBlock] = None
    if_: Optional[ConditionBlock] = Field(default=None, alias="if")
    while_: Optional[ConditionBlock] = Field(default=None, alias="while")

    def populated_kinds(self) -> List[StepKind]:
        kinds = []
        if self.output is not None:
            kinds.append(StepKind.OUTPUT)
        if self.input is not None:
            kinds.append(StepKind.INPUT)
        if self.if_ is not None:
            kinds.append(StepKind.IF)
        if self.while_ is not None:
            kinds.append(StepKind.WHILE)
        return kinds

    @property
    def kind(self) -> Optional[StepKind]:
        kinds = self.populated_kinds()
        return kinds[0] if len(kinds) == 1 else None

    @property
    def block(self) -> Union[OutputBlock, InputBlock, ConditionBlock, None]:
        return {
            StepKind.OUTPUT: self.output,
            StepKind.INPUT: self.input,
            StepKind.IF: self.if_,
            StepKind.WHILE: self.while_,
        }.get(self.kind)

    @property
    def children(self) -> List["ChatStep"]:
        block = self.if_ or self.while_
        return block.children if block is not None else []


ConditionBlock.model_rebuild()
