# /chatform/workflows/definitions.py

"""
Built-in chat form templates.

Templates are plain data in the same shape the engine accepts from an
embedding application: a list of steps, each holding exactly one of
`output`, `input`, `if` or `while`. Text may be a literal string or a
callable receiving the ChatContext. They are served by name through the
HTTP adapter.
"""

from typing import Any, Dict, List

from chatform.config import strings

# Type definition for a raw template
TemplateDefinition = List[Dict[str, Any]]


def _is_yes(text: str, context=None) -> bool:
    return text.strip().lower() in ("yes", "y")


def _is_yes_or_no(text: str, context=None) -> bool:
    return text.strip().lower() in ("yes", "y", "no", "n")


def _looks_like_email(text: str, context=None) -> bool:
    local, _, domain = text.strip().partition("@")
    return bool(local) and "." in domain and not domain.startswith(".")


GREETING: TemplateDefinition = [
    {"output": {"text": strings.ASK_NAME}},
    {"input": {"type": "text", "name": "name"}},
    {"output": {"text": strings.THINKING, "wait": 2000}},
    {"output": {"text": lambda ctx: f"Hello, {ctx.get_first_from_name('name')}!"}},
]

NEWSLETTER_SIGNUP: TemplateDefinition = [
    {"output": {"text": strings.NEWSLETTER_WELCOME}},
    {
        "input": {
            "type": "text",
            "name": "email",
            "validation": [
                {"fn": lambda text, ctx: bool(text.strip()), "error_text": strings.EMPTY_ANSWER},
                {"fn": _looks_like_email, "error_text": strings.INVALID_EMAIL},
            ],
        }
    },
    {"output": {"text": strings.ASK_ADD_TOPIC}},
    {
        "input": {
            "type": "text",
            "name": "add_topic",
            "validation": [{"fn": _is_yes_or_no, "error_text": strings.YES_OR_NO}],
        }
    },
    {
        "while": {
            "condition": lambda ctx: _is_yes(ctx.get_last_from_name("add_topic") or ""),
            "children": [
                {"output": {"text": strings.ASK_TOPIC}},
                {"input": {"type": "text", "name": "topic"}},
                {"output": {"text": strings.ASK_ANOTHER_TOPIC}},
                {
                    "input": {
                        "type": "text",
                        "name": "add_topic",
                        "validation": [{"fn": _is_yes_or_no, "error_text": strings.YES_OR_NO}],
                    }
                },
            ],
        }
    },
    {
        "if": {
            "condition": lambda ctx: bool(ctx.get_from_name("topic")),
            "children": [
                {"output": {"text": lambda ctx: f"You'll hear about: {', '.join(ctx.get_from_name('topic'))}."}},
            ],
        }
    },
    {"output": {"text": lambda ctx: f"Thanks! We'll write to {ctx.get_last_from_name('email')}."}},
]

TEMPLATES: Dict[str, TemplateDefinition] = {
    "greeting": GREETING,
    "newsletter_signup": NEWSLETTER_SIGNUP,
}
