# tests/unit/test_validator.py
import pytest

from chatform.models.flow import (
    ChatStep,
    ComputedText,
    ConditionBlock,
    LiteralText,
    OutputBlock,
    StepKind,
)
from chatform.workflows.validator import (
    TemplateConfigurationError,
    load_template,
    validate_block_children,
    validate_template,
    validate_variant_count,
)


def always(ctx):
    return True


class TestStepModel:

    def test_accepts_keyword_aliases_for_blocks(self):
        step = ChatStep.model_validate({"while": {"condition": always, "children": [{"output": {"text": "x"}}]}})
        assert step.kind is StepKind.WHILE
        assert step.children[0].output.text == LiteralText(value="x")

    def test_text_is_normalized_into_a_tagged_source(self):
        def fn(ctx):
            return "hi"

        literal = OutputBlock(text="hello")
        computed = OutputBlock(text=fn)
        assert isinstance(literal.text, LiteralText)
        assert literal.text.value == "hello"
        assert isinstance(computed.text, ComputedText)
        assert computed.text.fn is fn

    def test_output_defaults(self):
        block = OutputBlock()
        assert block.text.value == ""
        assert block.wait == 0
        assert block.complete is None

    def test_validation_rule_accepts_error_text_alias(self):
        step = ChatStep.model_validate(
            {"input": {"name": "age", "validation": [{"fn": lambda t, c: True, "errorText": "nope"}]}}
        )
        assert step.input.validation[0].error_text.value == "nope"


class TestStepChecks:

    def test_variant_count_rejects_empty_step(self):
        result = validate_variant_count(ChatStep())
        assert result["is_valid"] is False
        assert result["error_code"] == "INVALID_STEP_VARIANT_COUNT"

    def test_variant_count_rejects_two_variants(self):
        step = ChatStep(output=OutputBlock(text="a"), if_=ConditionBlock(condition=always, children=[]))
        result = validate_variant_count(step)
        assert result["is_valid"] is False
        assert "output, if" in result["message"]

    def test_block_children_required(self):
        step = ChatStep(if_=ConditionBlock(condition=always))
        result = validate_block_children(step)
        assert result["is_valid"] is False
        assert result["error_code"] == "EMPTY_BLOCK_CHILDREN"

    def test_valid_step_passes(self):
        assert validate_variant_count(ChatStep(output=OutputBlock()))["is_valid"] is True
        assert validate_block_children(ChatStep(output=OutputBlock()))["is_valid"] is True


class TestTemplateValidation:

    def test_valid_nested_template_loads(self):
        template = load_template([
            {"output": {"text": "hi"}},
            {"if": {"condition": always, "children": [
                {"while": {"condition": always, "children": [{"input": {"name": "x"}}]}},
            ]}},
        ])
        assert [step.kind for step in template] == [StepKind.OUTPUT, StepKind.IF]

    def test_empty_template_is_valid(self):
        assert load_template([]) == []

    def test_nested_malformed_step_reports_its_position(self):
        template = [
            ChatStep(output=OutputBlock(text="ok")),
            ChatStep(while_=ConditionBlock(condition=always, children=[
                ChatStep(output=OutputBlock()),
                ChatStep(),
            ])),
        ]
        with pytest.raises(TemplateConfigurationError) as exc_info:
            validate_template(template)
        assert exc_info.value.error_code == "INVALID_STEP_VARIANT_COUNT"
        assert exc_info.value.position == (1, 1)

    def test_nested_empty_block_is_rejected(self):
        with pytest.raises(TemplateConfigurationError) as exc_info:
            load_template([
                {"if": {"condition": always, "children": [
                    {"while": {"condition": always, "children": []}},
                ]}},
            ])
        assert exc_info.value.error_code == "EMPTY_BLOCK_CHILDREN"
        assert exc_info.value.position == (0, 0)

    def test_unknown_keys_are_malformed(self):
        with pytest.raises(TemplateConfigurationError) as exc_info:
            load_template([{"output": {"text": "hi"}}, {"prompt": {"text": "?"}}])
        assert exc_info.value.error_code == "MALFORMED_STEP"
        assert exc_info.value.position == (1,)

    def test_negative_wait_is_malformed(self):
        with pytest.raises(TemplateConfigurationError, match="malformed"):
            load_template([{"output": {"text": "hi", "wait": -5}}])

    def test_template_must_be_a_sequence(self):
        with pytest.raises(TemplateConfigurationError) as exc_info:
            load_template({"output": {"text": "hi"}})
        assert exc_info.value.error_code == "EMPTY_TEMPLATE_INPUT"

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            load_template([{}])
