"""recipeforge CLI: Typer-based command-line interface.

Provides the ``recipeforge`` command with subcommands for publishing
templates to a local registry, resolving references, and deploying recipes.

All output uses Rich for formatted terminal display.
"""
