"""Yes/no classifiers run against a small model to manage the agent loop."""

from typing import Any, Awaitable, Callable

from langchain_core.messages import HumanMessage, SystemMessage

from stepwise.domain.content import has_content, last_message_includes, message_text
from stepwise.llm.model import Model

USER_INPUT_GUIDELINES = """Does the following message explicitly require the user to respond with a decision, confirmation, or additional instructions?

Reply 'yes' if:
- The message asks a question ending with a question mark '?' that expects a real user answer.
- The message offers to do something ("Should I...", "Would you like me to...", "Can I...") and waits for the user's decision.
- The message proposes multiple options and asks the user to choose or confirm.

Reply 'no' if:
- The message only reports completed actions, statuses, or results, without asking anything.
- The message provides summaries, outcomes, or information, but does not propose future actions or request guidance.

If the message sounds like an offer or suggestion, assume it requires input and reply 'yes'.
If the message only describes the past or current state without asking anything, reply 'no'.

Always reply exactly 'yes' or 'no'. No explanations."""

WANTS_TO_EXIT_GUIDELINES = """Does the following message specifically want to end the conversation? Reply 'yes' and nothing else when the message asks to exit or end the conversation.

In all other cases, reply 'no' and nothing else."""

Classifier = Callable[[Any], Awaitable[bool]]

_is_yes = last_message_includes("yes", case_insensitive=True)


def answer_is_yes(guidelines: str, model: Model) -> Classifier:
    """
    Builds a classifier asking ``model`` a yes/no question about some content.

    Args:
        guidelines: System prompt framing the question.
        model: Model answering the question, usually a small local one.

    Returns:
        An async classifier over message content.
    """

    async def classify(content: Any) -> bool:
        if not has_content(content):
            raise ValueError("Cannot classify empty content.")
        completion = await model.complete(
            [SystemMessage(content=guidelines), HumanMessage(content=message_text(content))]
        )
        return await _is_yes(completion)

    return classify


def requests_user_input(model: Model) -> Classifier:
    """Classifier answering whether an assistant turn waits for the user."""
    return answer_is_yes(USER_INPUT_GUIDELINES, model)


def wants_to_exit(model: Model) -> Classifier:
    """Classifier answering whether a turn asks to end the conversation."""
    return answer_is_yes(WANTS_TO_EXIT_GUIDELINES, model)
