# /chatform/config/strings.py

# User-facing strings of the built-in templates and the HTTP adapter,
# kept in one place so they can be edited without touching the flows.

# Greeting template
ASK_NAME = "Enter your name: "
THINKING = "Thinking..."

# Newsletter signup template
NEWSLETTER_WELCOME = "Welcome! What's your email address?"
INVALID_EMAIL = "That doesn't look like an email address. Please try again."
EMPTY_ANSWER = "Please type an answer."
ASK_ADD_TOPIC = "Would you like to pick a topic you're interested in? (yes/no)"
ASK_TOPIC = "Which topic?"
ASK_ANOTHER_TOPIC = "Add another topic? (yes/no)"
YES_OR_NO = "Please answer yes or no."

# HTTP adapter
CONVERSATION_NOT_FOUND = "Conversation not found"
TEMPLATE_NOT_FOUND = "Template not found"
NOT_WAITING_FOR_INPUT = "Conversation is not waiting for input"
SESSION_LIMIT_REACHED = "Too many active conversations"
CALLBACK_FAILED = "The conversation stopped because a template step failed"
