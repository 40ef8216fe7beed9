"""Command framework for the skill.

- SkillContext: what the host hands every handler (user memory, optional
  notify/post capabilities)
- Command: description + parameter model + handler
- CommandRegistry: registration and dispatch

dispatch() is the single place where failures become chat replies. Errors
map to messages by kind through ERROR_MESSAGES; handlers raise and never
build fallback strings themselves. Fetch-layer details go to the log only.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from pydantic import ValidationError

from clients.errors import ApiError, NetworkError, ValidationFailure, ZigmaError
from db.memory import UserMemory
from .entitlements import EntitlementDenied
from .validators import CommandParams, InputValidationError, NoParams

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]
Post = Callable[[Dict[str, str]], None]


@dataclass
class SkillContext:
    user_id: str
    memory: UserMemory
    notify: Optional[Notify] = None
    post: Optional[Post] = None


Handler = Callable[[SkillContext, Any], str]


@dataclass
class Command:
    name: str
    description: str
    handler: Handler
    parameters: Type[CommandParams] = NoParams


# Error kind -> reply template ({command}, {error})
ERROR_MESSAGES: Dict[Type[Exception], str] = {
    InputValidationError: "❌ {error}",
    EntitlementDenied: "{error}",
    NetworkError: "❌ Couldn't reach the Zigma oracle for `zigma {command}`. Please try again.",
    ApiError: "❌ The Zigma oracle couldn't complete `zigma {command}`. Please try again.",
    ValidationFailure: "❌ The Zigma oracle sent an unexpected response for `zigma {command}`. Please try again.",
    ZigmaError: "❌ Failed to run `zigma {command}`. Please try again.",
}

FALLBACK_MESSAGE = "❌ Something went wrong with `zigma {command}`. Please try again."


def error_message(command: str, exc: Exception) -> str:
    """Resolve the user-facing reply for an exception raised by a handler."""
    for kind, template in ERROR_MESSAGES.items():
        if isinstance(exc, kind):
            return template.format(command=command, error=exc)
    return FALLBACK_MESSAGE.format(command=command)


class CommandRegistry:
    def __init__(self) -> None:
        self._commands: OrderedDict[str, Command] = OrderedDict()

    def register(self, command: Command) -> None:
        self._commands[command.name] = command

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    @property
    def commands(self) -> List[Command]:
        return list(self._commands.values())

    @property
    def command_names(self) -> List[str]:
        return list(self._commands.keys())

    def describe(self) -> Dict[str, Dict[str, Any]]:
        """Host-facing command table: description and JSON parameter schema."""
        return {
            c.name: {
                "description": c.description,
                "parameters": c.parameters.model_json_schema(),
            }
            for c in self._commands.values()
        }

    def parse_params(self, command: Command,
                     raw: Optional[Mapping[str, Any]]) -> CommandParams:
        try:
            return command.parameters.model_validate(dict(raw or {}))
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(p) for p in err["loc"]) or "parameters"
                for err in exc.errors()
            )
            raise InputValidationError(f"Invalid parameters: {fields}") from exc

    def dispatch(self, name: str, ctx: SkillContext,
                 raw_params: Optional[Mapping[str, Any]] = None) -> str:
        """Run a command and always return markdown."""
        command = self._commands.get(name)
        if command is None:
            raise KeyError(f"Command '{name}' not registered.")

        try:
            params = self.parse_params(command, raw_params)
            return command.handler(ctx, params)
        except (InputValidationError, EntitlementDenied) as exc:
            logger.info("Command '%s' refused for user=%s: %s",
                        name, ctx.user_id, type(exc).__name__)
            return error_message(name, exc)
        except ZigmaError as exc:
            logger.error(
                "Command '%s' failed for user=%s: %s (%s) details=%s",
                name, ctx.user_id, exc, exc.code, exc.details,
            )
            return error_message(name, exc)
        except Exception as exc:
            logger.exception("Command '%s' crashed for user=%s", name, ctx.user_id)
            return error_message(name, exc)
