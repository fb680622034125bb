# /chatform/workflows/validator.py

"""
Structural validation for chat form templates.

A template is checked once, before a conversation starts. Every step,
at any depth, must populate exactly one of `output`, `input`, `if` or
`while`, and every `if` / `while` block must have at least one child.
A violation raises TemplateConfigurationError so that no message is ever
emitted for a malformed template.

The per-step checks are pure functions returning a ValidationResult.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple, TypedDict

from pydantic import ValidationError

from chatform.models.flow import BLOCK_KINDS, ChatStep


class ValidationResult(TypedDict):
    """Result of a validation check."""
    is_valid: bool
    error_code: Optional[str]
    message: Optional[str]


class TemplateConfigurationError(ValueError):
    """Raised when a template cannot be run."""

    def __init__(self, message: str, error_code: str, position: Tuple[int, ...] = ()):
        super().__init__(message)
        self.error_code = error_code
        self.position = position


_VALID: ValidationResult = {"is_valid": True, "error_code": None, "message": None}


def validate_variant_count(step: ChatStep) -> ValidationResult:
    """
    Validate that exactly one step variant is populated.

    Args:
        step: The step to check

    Returns:
        ValidationResult with is_valid=False when zero or several variants are set
    """
    kinds = step.populated_kinds()
    if len(kinds) != 1:
        found = ", ".join(kind.value for kind in kinds) or "none"
        return {
            "is_valid": False,
            "error_code": "INVALID_STEP_VARIANT_COUNT",
            "message": f"Each step must have exactly one of input, output, if, or while defined (found: {found})"
        }
    return dict(_VALID)


def validate_block_children(step: ChatStep) -> ValidationResult:
    """
    Validate that an `if` or `while` step has children.

    Args:
        step: The step to check; non-block steps always pass

    Returns:
        ValidationResult with is_valid=False for an empty block
    """
    if step.kind in BLOCK_KINDS and len(step.children) == 0:
        return {
            "is_valid": False,
            "error_code": "EMPTY_BLOCK_CHILDREN",
            "message": f"'{step.kind.value}' step must have children defined"
        }
    return dict(_VALID)


def validate_template(template: Sequence[ChatStep], _prefix: Tuple[int, ...] = ()) -> None:
    """
    Recursively validate every step of a template.

    Raises:
        TemplateConfigurationError: on the first malformed step, depth first
    """
    for index, step in enumerate(template):
        position = _prefix + (index,)
        for check in (validate_variant_count, validate_block_children):
            result = check(step)
            if not result["is_valid"]:
                raise TemplateConfigurationError(
                    f"{result['message']} at position {list(position)}",
                    error_code=result["error_code"],
                    position=position,
                )
        if step.kind in BLOCK_KINDS:
            validate_template(step.children, position)


def load_template(raw: Iterable[Any]) -> List[ChatStep]:
    """
    Build and validate a template from ChatStep models or plain dicts.

    Raises:
        TemplateConfigurationError: when a step cannot be parsed or is malformed
    """
    if raw is None or isinstance(raw, (str, bytes, dict)):
        raise TemplateConfigurationError(
            "Template must be a sequence of steps",
            error_code="EMPTY_TEMPLATE_INPUT",
        )

    steps: List[ChatStep] = []
    for index, item in enumerate(raw):
        if isinstance(item, ChatStep):
            steps.append(item)
            continue
        try:
            steps.append(ChatStep.model_validate(item))
        except ValidationError as e:
            raise TemplateConfigurationError(
                f"Step at position {[index]} is malformed: {e}",
                error_code="MALFORMED_STEP",
                position=(index,),
            ) from e

    validate_template(steps)
    return steps
