"""
Command-line interface for the recipe runner.

Usage:
    recipe-runner commit "fix bug"       Test, lint, format, commit and push
    recipe-runner publish 1.2.3          Commit a version bump and publish
    recipe-runner --list                 List available recipes
    recipe-runner --show publish         Show a recipe's steps
    recipe-runner --dry-run commit msg   Print the commands without running them
"""

import argparse
import logging
import sys
from typing import List, Optional

from .colored_logger import get_colored_logger, setup_colored_logging
from .config import load_config
from .errors import RecipeError, StepFailed
from .runner import RecipeRunner

logger = get_colored_logger(__name__)

EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


class RecipeCLI:
    """Command-line interface for running recipes."""

    def create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="recipe-runner",
            description="Run named command recipes, stopping at the first failing step",
        )
        parser.add_argument(
            "--config", help="Path to a recipe file (default: ./recipes.yml if present)"
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Print the commands a recipe would run without running them",
        )
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Enable debug logging"
        )
        parser.add_argument(
            "--list", action="store_true", help="List available recipes and exit"
        )
        parser.add_argument("--show", metavar="RECIPE", help="Show a recipe and exit")
        parser.add_argument("recipe", nargs="?", help="Recipe to run")
        parser.add_argument(
            "arguments", nargs=argparse.REMAINDER, help="Arguments for the recipe"
        )
        return parser

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI with the given arguments and return the exit code."""
        parser = self.create_parser()
        parsed_args = parser.parse_args(args)

        setup_colored_logging(logging.DEBUG if parsed_args.verbose else logging.INFO)

        try:
            config = load_config(parsed_args.config)
            runner = RecipeRunner(config, dry_run=parsed_args.dry_run)

            if parsed_args.show:
                print(runner.show_recipe(parsed_args.show))
                return 0

            if parsed_args.list or not parsed_args.recipe:
                self._print_recipes(runner)
                return 0

            runner.invoke(parsed_args.recipe, parsed_args.arguments)
            return 0

        except StepFailed as e:
            return e.exit_code
        except RecipeError as e:
            logger.error("%s", e)
            return EXIT_USAGE
        except KeyboardInterrupt:
            logger.warning("Interrupted, remaining steps skipped")
            return EXIT_INTERRUPTED

    def _print_recipes(self, runner: RecipeRunner) -> None:
        print("Available recipes:")
        for entry in runner.list_recipes():
            line = f"    {entry['signature']}"
            if entry["description"]:
                line = f"{line:<32} # {entry['description']}"
            print(line)


def main(argv: Optional[List[str]] = None) -> int:
    return RecipeCLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
