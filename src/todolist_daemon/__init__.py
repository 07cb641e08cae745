"""todolist-daemon -- poll a to-do list API with OAuth2 bearer tokens.

The daemon authenticates against an OAuth2 identity provider with the
resource-owner password grant, then calls the ``/api/todolist`` endpoint of
a remote API on a fixed interval, printing the items it finds.

Typical workflow::

    todod config check          # verify every required setting is present
    todod run --cycles 10       # poll ten times, three seconds apart
    todod run --forever --post  # post and list until Ctrl-C

Modules:
    app: Typer application and console-script entry point.
    models: Pydantic models for settings, tokens, and to-do items.
    config: XDG-aware settings resolution (file, env, CLI overrides).
    loop: The authenticated polling loop.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
