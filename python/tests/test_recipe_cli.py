"""
CLI tests: argument handling and exit-code mapping.
"""

import io
import logging
import os
import subprocess
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recipe_runner.cli import EXIT_INTERRUPTED, EXIT_USAGE, main


class TestRecipeCLI(unittest.TestCase):
    def setUp(self):
        # Run from an empty directory so no stray recipes.yml is picked up
        self.temp_dir = tempfile.mkdtemp()
        self.old_cwd = os.getcwd()
        os.chdir(self.temp_dir)

    def tearDown(self):
        os.chdir(self.old_cwd)
        os.rmdir(self.temp_dir)
        logging.getLogger().handlers.clear()

    def run_cli(self, argv, side_effect=None):
        if side_effect is None:
            side_effect = lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 0)

        stdout = io.StringIO()
        with patch(
            "recipe_runner.runner.subprocess.run", side_effect=side_effect
        ) as mock_run, redirect_stdout(stdout):
            code = main(argv)
        return code, mock_run, stdout.getvalue()

    def test_commit_success(self):
        code, mock_run, _ = self.run_cli(["commit", "fix bug"])

        self.assertEqual(code, 0)
        self.assertEqual(mock_run.call_count, 6)
        self.assertEqual(
            mock_run.call_args_list[4].args[0], ["git", "commit", "-m", "fix bug"]
        )

    def test_failing_step_exit_code_passthrough(self):
        def lint_fails(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 3 if cmd[1] == "clippy" else 0)

        code, mock_run, _ = self.run_cli(["publish", "1.2.3"], side_effect=lint_fails)

        self.assertEqual(code, 3)
        self.assertEqual(mock_run.call_count, 2)

    def test_signal_killed_step_exit_code(self):
        def terminated(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, -15 if cmd[1] == "test" else 0)

        code, mock_run, _ = self.run_cli(["commit", "msg"], side_effect=terminated)

        self.assertEqual(code, 143)
        self.assertEqual(mock_run.call_count, 1)

    def test_bare_global_in_recipe_file(self):
        with open("recipes.yml", "w", encoding="utf-8") as f:
            f.write("global:\nrecipes:\n  hi:\n    steps: ['true']\n")
        try:
            code, mock_run, _ = self.run_cli(["--config", "recipes.yml", "hi"])
        finally:
            os.unlink("recipes.yml")

        self.assertEqual(code, 0)
        self.assertEqual(mock_run.call_args.args[0], ["true"])

    def test_invalid_global_in_recipe_file(self):
        with open("recipes.yml", "w", encoding="utf-8") as f:
            f.write("global: 42\n")
        try:
            code, mock_run, _ = self.run_cli(["--config", "recipes.yml", "commit", "x"])
        finally:
            os.unlink("recipes.yml")

        self.assertEqual(code, EXIT_USAGE)
        mock_run.assert_not_called()

    def test_arity_mismatch_is_usage_error(self):
        code, mock_run, _ = self.run_cli(["commit"])

        self.assertEqual(code, EXIT_USAGE)
        mock_run.assert_not_called()

    def test_unknown_recipe_is_usage_error(self):
        code, mock_run, _ = self.run_cli(["deploy"])

        self.assertEqual(code, EXIT_USAGE)
        mock_run.assert_not_called()

    def test_arguments_starting_with_dash_go_to_recipe(self):
        code, mock_run, _ = self.run_cli(["commit", "--amend"])

        self.assertEqual(code, 0)
        self.assertEqual(mock_run.call_args_list[4].args[0][-1], "--amend")

    def test_dry_run(self):
        code, mock_run, _ = self.run_cli(["--dry-run", "publish", "1.2.3"])

        self.assertEqual(code, 0)
        mock_run.assert_not_called()

    def test_interrupt(self):
        def interrupted(cmd, **kwargs):
            raise KeyboardInterrupt

        code, mock_run, _ = self.run_cli(["commit", "msg"], side_effect=interrupted)

        self.assertEqual(code, EXIT_INTERRUPTED)
        self.assertEqual(mock_run.call_count, 1)

    def test_list(self):
        code, mock_run, output = self.run_cli(["--list"])

        self.assertEqual(code, 0)
        self.assertIn("commit message", output)
        self.assertIn("publish version", output)
        mock_run.assert_not_called()

    def test_no_recipe_lists(self):
        code, _, output = self.run_cli([])

        self.assertEqual(code, 0)
        self.assertIn("Available recipes:", output)

    def test_show(self):
        code, _, output = self.run_cli(["--show", "commit"])

        self.assertEqual(code, 0)
        self.assertIn("git commit -m {{message}}", output)

    def test_missing_config_file(self):
        code, mock_run, _ = self.run_cli(["--config", "missing.yml", "commit", "x"])

        self.assertEqual(code, EXIT_USAGE)
        mock_run.assert_not_called()


if __name__ == "__main__":
    unittest.main()
