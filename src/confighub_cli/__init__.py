# ABOUTME: ConfigHub CLI package initialization
# ABOUTME: Exposes version information for the cub command-line client

"""
ConfigHub CLI - command-line client for the ConfigHub configuration service.

=============================================================================
WHAT IS THIS PACKAGE?
=============================================================================

`cub` turns command-line flags into ConfigHub REST API calls. Most commands
follow one template:

    parse args -> build request -> call the API -> interpret errors -> render

Mutating commands (unit create/update, function invocation, link creation,
apply/refresh/destroy/import) can additionally WAIT until the server finishes
its asynchronous follow-up work. That waiting is done by the trigger-await
engine in `confighub_cli.utils.waiting`.

=============================================================================
PACKAGE STRUCTURE OVERVIEW
=============================================================================

confighub_cli/
├── __init__.py          <- YOU ARE HERE: Package entry point
├── config.py            <- Settings from environment variables
├── cli.py               <- Typer application and command handlers
└── utils/
    ├── __init__.py      <- Utils subpackage marker
    ├── client.py        <- Async HTTP client for the ConfigHub REST API
    ├── logging.py       <- Structured logging and audit trail
    └── waiting.py       <- Trigger/mutation awaiting engine
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
