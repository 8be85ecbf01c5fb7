"""Message chain helpers: validation, quick chains and templates."""

from __future__ import annotations

from .exceptions import InvalidMessageError
from .models import Message, MessageRole

_ROLES = {role.value: role for role in MessageRole}


def quick_message(text: str) -> list[Message]:
    """Build a single-user-message chain."""
    return [Message(role=MessageRole.USER, content=text)]


def validate_messages(messages: list[Message]) -> None:
    """
    Validate a message chain.

    Rules:
    - Must not be empty
    - Roles must be system, user or agent
    - A system message, if present, must be first and unique
    - At least one non-system message is required

    Raises:
        InvalidMessageError: If any rule is broken.
    """
    if not messages:
        raise InvalidMessageError("message chain cannot be empty")

    non_system_seen = False
    for index, message in enumerate(messages):
        role = _ROLES.get(message.role_name)
        if role is None:
            raise InvalidMessageError(
                f"invalid role '{message.role_name}' at position {index}"
            )

        if role is MessageRole.SYSTEM:
            if index > 0:
                raise InvalidMessageError("system message must be first in the chain")
        else:
            non_system_seen = True

    if not non_system_seen:
        raise InvalidMessageError("at least one non-system message is required")


def apply_system_override(
    messages: list[Message], system_message: str | None
) -> list[Message]:
    """
    Replace (or prepend) the chain's system message with an explicit one.

    Returns a new list; the input chain is never mutated.
    """
    if not system_message:
        return list(messages)

    override = Message(role=MessageRole.SYSTEM, content=system_message)
    if messages and messages[0].role_name == MessageRole.SYSTEM.value:
        return [override, *messages[1:]]
    return [override, *messages]


def template_message(template: str) -> list[Message]:
    """
    Parse a template with ``@role:`` markers into a message chain.

    Example::

        @system:
        You are a helpful assistant
        @user:
        Hello

    Text after the colon on a marker line belongs to that section. Sections
    with unknown roles or no content are dropped.
    """
    messages: list[Message] = []
    current_role: MessageRole | None = None
    content_lines: list[str] = []

    def flush() -> None:
        if current_role is None or not content_lines:
            return
        content = "\n".join(content_lines).strip()
        if content:
            messages.append(Message(role=current_role, content=content))

    for line in template.split("\n"):
        trimmed = line.strip()

        if trimmed.startswith("@") and ":" in trimmed:
            flush()

            role_part, rest = trimmed.split(":", 1)
            current_role = _ROLES.get(role_part[1:].strip())
            content_lines = []
            if rest.strip():
                content_lines.append(rest.strip())
        elif current_role is not None:
            content_lines.append(line)

    flush()
    return messages
