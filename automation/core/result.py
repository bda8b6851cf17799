"""Result type used by the service layer.

Services return `Ok(value)` or `Err(error)` instead of raising, so a command
handler decides in one place how a failure is reported:

    match catch_uncommitted(root=root, env=env):
        case Ok(_):
            pass
        case Err(error):
            raise CommandFailed(error.message, error.hint)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful outcome carrying a value."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed outcome carrying an error value."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
