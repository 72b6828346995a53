"""Developer CLI for the workspace assistant.

The CLI can be run directly:
    python -m workspace_assistant.ui.cli classify "Create a GitHub issue"

Note: CLI components are not exported from __init__.py so the module can be
run as a script.
"""

__all__ = []  # CLI is run directly, no exports needed
