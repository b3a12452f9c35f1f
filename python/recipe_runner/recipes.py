"""
Recipe model: parsing recipe declarations, binding arguments and planning.

A recipe is a named, ordered list of steps. A step is either a command
template such as ``git commit -m {{message}}`` or a call to another recipe.
Planning turns a recipe plus concrete arguments into a flat list of argv
commands; nothing here ever starts a process.
"""

import re
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .errors import (
    ArityError,
    ConfigError,
    RecursiveRecipeError,
    TemplateError,
    UnknownRecipeError,
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_-]*)\s*\}\}")
NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class Parameter:
    name: str
    default: Optional[str] = None

    @property
    def required(self) -> bool:
        return self.default is None

    @classmethod
    def parse(cls, declaration: str) -> "Parameter":
        """Parse ``"name"`` or ``"name=default"``."""
        if not isinstance(declaration, str):
            raise ConfigError(f"Parameter declaration must be a string: {declaration!r}")

        name, sep, default = declaration.partition("=")
        name = name.strip()
        if not NAME_PATTERN.match(name):
            raise ConfigError(f"Invalid parameter name: {declaration!r}")
        return cls(name=name, default=default.strip() if sep else None)

    def __str__(self) -> str:
        if self.required:
            return self.name
        return f"{self.name}={shlex.quote(self.default)}"


@dataclass(frozen=True)
class RecipeCall:
    """A step that runs another recipe with templated arguments."""

    recipe: str
    args: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return " ".join([f"@{self.recipe}"] + [shlex.quote(a) for a in self.args])


Step = Union[str, RecipeCall]


@dataclass
class Recipe:
    name: str
    steps: List[Step]
    parameters: List[Parameter] = field(default_factory=list)
    description: str = ""

    @property
    def min_args(self) -> int:
        return sum(1 for p in self.parameters if p.required)

    @property
    def max_args(self) -> int:
        return len(self.parameters)

    @property
    def signature(self) -> str:
        return " ".join([self.name] + [str(p) for p in self.parameters])

    def bind(self, args: List[str]) -> Dict[str, str]:
        """
        Bind positional arguments to this recipe's parameters.

        Missing optional parameters take their defaults.

        Raises:
            ArityError: if too few or too many arguments are given
        """
        if not self.min_args <= len(args) <= self.max_args:
            raise ArityError(self.name, self.min_args, self.max_args, len(args))

        bound = {}
        for index, parameter in enumerate(self.parameters):
            bound[parameter.name] = args[index] if index < len(args) else parameter.default
        return bound

    @classmethod
    def from_config(cls, name: str, raw: Dict[str, Any]) -> "Recipe":
        """Build a recipe from its configuration mapping."""
        if not isinstance(name, str) or not NAME_PATTERN.match(name):
            raise ConfigError(f"Invalid recipe name: {name!r}")
        if not isinstance(raw, dict):
            raise ConfigError(f"Recipe '{name}' must be a mapping")

        raw_params = raw.get("params") or []
        if not isinstance(raw_params, list):
            raise ConfigError(f"Recipe '{name}': params must be a list")

        parameters = [Parameter.parse(p) for p in raw_params]
        seen = set()
        seen_optional = False
        for parameter in parameters:
            if parameter.name in seen:
                raise ConfigError(
                    f"Recipe '{name}' declares parameter '{parameter.name}' twice"
                )
            seen.add(parameter.name)
            if parameter.required and seen_optional:
                raise ConfigError(
                    f"Recipe '{name}': required parameter '{parameter.name}' "
                    "follows a parameter with a default"
                )
            seen_optional = seen_optional or not parameter.required

        raw_steps = raw.get("steps")
        if not isinstance(raw_steps, list) or not raw_steps:
            raise ConfigError(f"Recipe '{name}' must declare a non-empty list of steps")

        return cls(
            name=name,
            steps=[_parse_step(name, step) for step in raw_steps],
            parameters=parameters,
            description=str(raw.get("description") or ""),
        )


def _parse_step(recipe_name: str, raw: Any) -> Step:
    if isinstance(raw, str):
        if not raw.strip():
            raise ConfigError(f"Recipe '{recipe_name}' has an empty step")
        return raw

    if isinstance(raw, dict) and "recipe" in raw:
        args = raw.get("args") or []
        if not isinstance(args, list):
            raise ConfigError(
                f"Recipe '{recipe_name}': args of call to '{raw['recipe']}' must be a list"
            )
        return RecipeCall(recipe=str(raw["recipe"]), args=[str(a) for a in args])

    raise ConfigError(f"Recipe '{recipe_name}' has an invalid step: {raw!r}")


def load_recipes(recipes_config: Dict[str, Any]) -> Dict[str, Recipe]:
    """
    Build the recipe table from the ``recipes`` section of the configuration.

    Entries set to ``None`` are treated as removed.
    """
    if not isinstance(recipes_config, dict):
        raise ConfigError("'recipes' must be a mapping of recipe names to recipes")

    return {
        name: Recipe.from_config(name, raw)
        for name, raw in recipes_config.items()
        if raw is not None
    }


def substitute(template: str, values: Dict[str, str]) -> str:
    """Replace every ``{{name}}`` in ``template`` with its bound value."""

    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in values:
            raise TemplateError(f"Undeclared parameter '{key}' in: {template}")
        return values[key]

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def render_command(template: str, values: Dict[str, str]) -> List[str]:
    """
    Turn a command template into an argv list.

    The template is split with POSIX shell rules first and placeholders are
    filled in per token, so a value containing spaces or quotes stays a
    single argument.
    """
    # Collapse "{{ name }}" to "{{name}}" so a placeholder is never split
    normalized = PLACEHOLDER_PATTERN.sub(lambda m: "{{" + m.group(1) + "}}", template)
    try:
        tokens = shlex.split(normalized)
    except ValueError as e:
        raise TemplateError(f"Cannot parse command template {template!r}: {e}") from e

    if not tokens:
        raise TemplateError(f"Command template is empty: {template!r}")
    return [substitute(token, values) for token in tokens]


def plan(
    recipes: Dict[str, Recipe],
    name: str,
    args: List[str],
    _chain: Optional[List[str]] = None,
) -> List[List[str]]:
    """
    Resolve an invocation into the ordered list of commands it will run.

    Recipe calls are expanded in place. Every error (unknown recipe, arity,
    undeclared placeholder, recursion) surfaces here, before anything runs.
    """
    chain = list(_chain or [])
    if name in chain:
        raise RecursiveRecipeError(chain + [name])
    chain.append(name)

    recipe = recipes.get(name)
    if recipe is None:
        raise UnknownRecipeError(name, list(recipes))

    values = recipe.bind(args)
    commands: List[List[str]] = []
    for step in recipe.steps:
        if isinstance(step, RecipeCall):
            call_args = [substitute(arg, values) for arg in step.args]
            commands.extend(plan(recipes, step.recipe, call_args, chain))
        else:
            commands.append(render_command(step, values))
    return commands
