"""
Recipe runner - resolves a recipe invocation and runs its steps in order.
"""

import shlex
import signal
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .colored_logger import get_colored_logger
from .config import as_bool
from .errors import StepFailed, UnknownRecipeError
from .recipes import Recipe, load_recipes, plan

logger = get_colored_logger(__name__)

# Exit status reported when a step's executable cannot be found (as sh does).
COMMAND_NOT_FOUND = 127
# Steps killed by signal N are reported as 128 + N, as sh does.
SIGNAL_EXIT_BASE = 128


@dataclass
class Invocation:
    """One run of a recipe with concrete arguments."""

    recipe: str
    arguments: List[str]
    commands: List[List[str]]
    completed: List[List[str]] = field(default_factory=list)
    exit_code: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class RecipeRunner:
    """Dispatches recipe invocations to sequential subprocess runs."""

    def __init__(self, config: Dict[str, Any], dry_run: bool = False):
        self.config = config
        self.dry_run = dry_run

        settings = self.config.get("global") or {}
        self.working_directory = Path(str(settings.get("working_directory") or "."))
        self.echo_commands = as_bool(settings.get("echo_commands", True))

        self.recipes: Dict[str, Recipe] = load_recipes(self.config.get("recipes", {}))

    def run_command(
        self, cmd: List[str], cwd: Optional[Union[str, Path]] = None
    ) -> int:
        """
        Run one command, passing its stdout/stderr straight through.

        Returns:
            The command's exit status
        """
        if cwd is None:
            cwd = self.working_directory

        cmd_str = shlex.join(cmd)
        logger.debug("Running: %s (cwd: %s)", cmd_str, cwd)

        try:
            result = subprocess.run(cmd, cwd=cwd, check=False)
        except FileNotFoundError:
            logger.error("Command not found: %s", cmd[0])
            return COMMAND_NOT_FOUND

        if result.returncode < 0:
            signum = -result.returncode
            try:
                signame = signal.Signals(signum).name
            except ValueError:
                signame = f"signal {signum}"
            logger.error("Command killed by %s: %s", signame, cmd_str)
            return SIGNAL_EXIT_BASE + signum

        if result.returncode == 0:
            logger.debug("Command succeeded: %s", cmd_str)
        else:
            logger.debug("Command failed (code %d): %s", result.returncode, cmd_str)
        return result.returncode

    def plan(self, name: str, args: List[str]) -> Invocation:
        """Resolve ``name`` and ``args`` into an invocation without running it."""
        return Invocation(
            recipe=name, arguments=list(args), commands=plan(self.recipes, name, args)
        )

    def invoke(self, name: str, args: List[str]) -> Invocation:
        """
        Run a recipe.

        The whole invocation is planned first, so argument or template errors
        are raised before any command starts. Commands then run one at a time
        and the first non-zero exit stops the rest.

        Raises:
            RecipeError: if the invocation cannot be planned
            StepFailed: if a step exits non-zero
        """
        invocation = self.plan(name, args)
        total = len(invocation.commands)
        logger.info("Running recipe '%s' (%d step(s))", name, total)

        for index, cmd in enumerate(invocation.commands, start=1):
            cmd_str = shlex.join(cmd)
            if self.dry_run:
                logger.info("[DRY RUN] Would run: %s", cmd_str)
                invocation.completed.append(cmd)
                continue

            if self.echo_commands:
                logger.progress("[%d/%d] %s", index, total, cmd_str)

            exit_code = self.run_command(cmd)
            if exit_code != 0:
                invocation.exit_code = exit_code
                logger.failure(
                    "Recipe '%s' stopped: step %d/%d exited with code %d: %s",
                    name,
                    index,
                    total,
                    exit_code,
                    cmd_str,
                )
                raise StepFailed(cmd, exit_code, invocation)

            invocation.completed.append(cmd)

        invocation.exit_code = 0
        logger.success("Recipe '%s' finished", name)
        return invocation

    def list_recipes(self) -> List[Dict[str, str]]:
        """Return name, signature and description for every recipe."""
        return [
            {
                "name": recipe.name,
                "signature": recipe.signature,
                "description": recipe.description,
            }
            for recipe in sorted(self.recipes.values(), key=lambda r: r.name)
        ]

    def show_recipe(self, name: str) -> str:
        """Render a recipe's declaration as text."""
        recipe = self.recipes.get(name)
        if recipe is None:
            raise UnknownRecipeError(name, list(self.recipes))

        lines = []
        if recipe.description:
            lines.append(f"# {recipe.description}")
        lines.append(f"{recipe.signature}:")
        for step in recipe.steps:
            lines.append(f"    {step}")
        return "\n".join(lines)
