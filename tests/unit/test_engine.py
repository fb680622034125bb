# tests/unit/test_engine.py
import pytest

from chatform.workflows.engine import (
    START_POSITION,
    descend,
    exited_blocks,
    get_step,
    is_finished,
    next_position,
)
from chatform.workflows.validator import load_template


def always(ctx):
    return True


@pytest.fixture
def template():
    return load_template([
        {"output": {"text": "a"}},                                   # (0,)
        {"if": {"condition": always, "children": [
            {"output": {"text": "b"}},                               # (1, 0)
            {"output": {"text": "c"}},                               # (1, 1)
        ]}},
        {"while": {"condition": always, "children": [
            {"output": {"text": "d"}},                               # (2, 0)
            {"if": {"condition": always, "children": [
                {"output": {"text": "e"}},                           # (2, 1, 0)
            ]}},
        ]}},
        {"output": {"text": "f"}},                                   # (3,)
    ])


def text_at(position, template):
    return get_step(position, template).output.text.value


class TestGetStep:

    def test_resolves_top_level_and_nested_steps(self, template):
        assert get_step((0,), template) is template[0]
        assert text_at((1, 1), template) == "c"
        assert text_at((2, 1, 0), template) == "e"

    def test_block_position_returns_the_block_itself(self, template):
        assert get_step((2,), template) is template[2]
        assert get_step((2, 1), template) is template[2].children[1]

    def test_out_of_range_positions_resolve_to_none(self, template):
        assert get_step((4,), template) is None
        assert get_step((1, 2), template) is None
        assert get_step((2, 1, 1), template) is None

    def test_empty_position_resolves_to_none(self, template):
        assert get_step((), template) is None


class TestNextPosition:

    def test_moves_to_next_sibling(self, template):
        assert next_position((0,), template) == (1,)
        assert next_position((1, 0), template) == (1, 1)
        assert next_position((2, 0), template) == (2, 1)

    def test_exhausted_if_is_stepped_over(self, template):
        assert next_position((1, 1), template) == (2,)

    def test_exhausted_while_returns_to_loop_position(self, template):
        # (2, 1) is an `if` that is the last child of the `while` at (2,)
        assert next_position((2, 1, 0), template) == (2,)

    def test_skipping_a_block_moves_past_it(self, template):
        assert next_position((1,), template) == (2,)
        assert next_position((2,), template) == (3,)

    def test_end_of_template_is_out_of_range(self, template):
        end = next_position((3,), template)
        assert end == (4,)
        assert is_finished(end, template)

    def test_if_as_last_top_level_step_ends_the_template(self):
        template = load_template([
            {"output": {"text": "a"}},
            {"if": {"condition": always, "children": [{"output": {"text": "b"}}]}},
        ])
        assert next_position((1, 0), template) == (2,)
        assert get_step((2,), template) is None

    def test_does_not_mutate_the_given_position(self, template):
        position = (1, 0)
        next_position(position, template)
        assert position == (1, 0)

    def test_empty_position_is_rejected(self, template):
        with pytest.raises(ValueError):
            next_position((), template)

    def test_repeated_advance_without_descending_terminates(self, template):
        position = START_POSITION
        visited = [position]
        while not is_finished(position, template):
            position = next_position(position, template)
            visited.append(position)
        assert visited == [(0,), (1,), (2,), (3,), (4,)]


class TestDescendAndExit:

    def test_descend_enters_first_child(self):
        assert descend((2,)) == (2, 0)
        assert descend((2, 1)) == (2, 1, 0)

    def test_leaving_an_if_lists_it(self, template):
        assert exited_blocks((1, 1), (2,), template) == [(1,)]

    def test_nested_if_exit_inside_while(self, template):
        assert exited_blocks((2, 1, 0), (2,), template) == [(2, 1)]

    def test_sibling_move_exits_nothing(self, template):
        assert exited_blocks((1, 0), (1, 1), template) == []
        assert exited_blocks((0,), (1,), template) == []
