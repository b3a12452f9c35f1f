"""
Recipe Runner
===========================================

Named command recipes run as sequential subprocesses, stopping at the first
failing step.
"""

__version__ = "1.0.0"

from .config import load_config
from .errors import RecipeError, StepFailed
from .runner import Invocation, RecipeRunner

__all__ = ["RecipeRunner", "Invocation", "RecipeError", "StepFailed", "load_config"]
