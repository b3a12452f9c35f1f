"""
Exception types raised by the recipe runner.

Everything that can go wrong while loading or planning a recipe is raised
before any command is started. ``StepFailed`` is the only error raised while
commands are actually running.
"""

import shlex
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .runner import Invocation


class RecipeError(Exception):
    """Base class for all recipe runner errors."""


class ConfigError(RecipeError):
    """Recipe configuration could not be loaded or is invalid."""


class UnknownRecipeError(RecipeError):
    def __init__(self, name: str, available: Optional[List[str]] = None):
        self.name = name
        self.available = sorted(available or [])
        message = f"Unknown recipe '{name}'"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class ArityError(RecipeError):
    """Wrong number of arguments for a recipe."""

    def __init__(self, recipe: str, expected_min: int, expected_max: int, given: int):
        self.recipe = recipe
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.given = given

        if expected_min == expected_max:
            expected = str(expected_min)
        else:
            expected = f"{expected_min} to {expected_max}"
        plural = "" if expected_max == 1 else "s"
        verb = "was" if given == 1 else "were"
        super().__init__(
            f"Recipe '{recipe}' takes {expected} argument{plural} but {given} {verb} given"
        )


class TemplateError(RecipeError):
    """A command template is malformed or references an undeclared parameter."""


class RecursiveRecipeError(RecipeError):
    def __init__(self, chain: List[str]):
        self.chain = list(chain)
        super().__init__(f"Recursive recipe call: {' -> '.join(self.chain)}")


class StepFailed(RecipeError):
    """
    A step exited with a non-zero status.

    Carries the failing command and its exit code. ``invocation`` holds what
    had already run when the failure happened; nothing is rolled back.
    """

    def __init__(
        self,
        command: List[str],
        exit_code: int,
        invocation: Optional["Invocation"] = None,
    ):
        self.command = list(command)
        self.exit_code = exit_code
        self.invocation = invocation
        super().__init__(
            f"Step failed with exit code {exit_code}: {shlex.join(self.command)}"
        )
