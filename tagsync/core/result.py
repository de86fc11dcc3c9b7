"""Result type for explicit error handling.

Every git/gh/cargo call in tagsync can fail, and most failures are expected
(network hiccups, a release that already exists, a tag that is not there yet).
Operations return ``Ok(value)`` or ``Err(error)`` instead of raising, so the CLI
layer is the only place that turns failures into exit codes.

Usage:
    match repo.ls_remote_tags("origin"):
        case Ok(output):
            print(output)
        case Err(error):
            print(f"git failed: {error.message}")
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful outcome carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed outcome carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
