"""
Test suite for recipe-runner.

Test Categories:
- Recipe model: parsing, argument binding, template rendering and planning
- Runner: step order, stop-on-failure and exit code propagation
- Config and CLI: recipe file loading, overrides and exit code mapping
"""
