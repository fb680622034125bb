# /chatform/workflows/engine.py

"""
Pure cursor arithmetic over a chat form template.

A position is a tuple of indices: (i,) addresses the i-th top-level step,
(i, j) the j-th child of the i-th step (an `if` or `while`), and so on.

All functions are:
- Pure (positions are tuples, a new one is returned on every move)
- Deterministic (same template and position = same result)
- Free of callbacks (conditions are evaluated by the driver, not here)

Moving forward follows one asymmetry: an exhausted `if` block is stepped
over as if the block itself had just finished, while an exhausted `while`
block hands control back to the loop's own position so the driver can
re-check its condition.
"""

from typing import List, Optional, Sequence, Tuple

from chatform.models.flow import BLOCK_KINDS, ChatStep, StepKind

Position = Tuple[int, ...]

START_POSITION: Position = (0,)


def get_step(position: Position, template: Sequence[ChatStep]) -> Optional[ChatStep]:
    """
    Resolve the step addressed by a position.

    Returns None when the position points past the end of its level,
    which is how the driver learns there is nothing left to run there.
    """
    if not position:
        return None

    index = position[0]
    if index < 0 or index >= len(template):
        return None

    step = template[index]
    if step.kind in BLOCK_KINDS and len(position) > 1:
        return get_step(position[1:], step.children)
    return step


def next_position(position: Position, template: Sequence[ChatStep]) -> Position:
    """
    Compute the position to run after the step at `position` has finished.

    1. Try the next sibling.
    2. Otherwise leave the current level.
    3. If the enclosing step is an `if`, keep moving forward from it.
    4. Otherwise return the enclosing position (a `while` to re-check).

    At the top level the out-of-range sibling position is returned as is,
    so the end of the template is a one-element position with no step.
    """
    if not position:
        raise ValueError("Cannot advance from an empty position")

    candidate = position[:-1] + (position[-1] + 1,)
    if get_step(candidate, template) is not None:
        return candidate

    parent = candidate[:-1]
    if not parent:
        return candidate

    step = get_step(parent, template)
    if step is not None and step.kind is StepKind.IF:
        return next_position(parent, template)
    return parent


def descend(position: Position) -> Position:
    """Enter the first child of the block at `position`."""
    return position + (0,)


def is_finished(position: Position, template: Sequence[ChatStep]) -> bool:
    return get_step(position, template) is None


def exited_blocks(old: Position, new: Position, template: Sequence[ChatStep]) -> List[Position]:
    """
    List the `if` blocks that enclose `old` but not `new`, deepest first.

    These are the blocks a move from `old` to `new` has just completed.
    `while` blocks are never listed: leaving one only happens when its
    condition turns false, which the driver handles explicitly.
    """
    exited = []
    for depth in range(len(old) - 1, 0, -1):
        prefix = old[:depth]
        step = get_step(prefix, template)
        if step is None or step.kind is not StepKind.IF:
            continue
        if len(new) > depth and new[:depth] == prefix:
            continue
        exited.append(prefix)
    return exited
