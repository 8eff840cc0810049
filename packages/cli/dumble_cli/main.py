"""dumble CLI - Main entry point."""

import typer
from dumble_common import configure_logging
from dumble_common.logger import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV

from . import build_cmd, plan_cmd

app = typer.Typer(
    name="dumble",
    help="dumble CLI - Bundle TypeScript packages from their package.json exports",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def setup(
    log_level: str = typer.Option(
        DEFAULT_LOG_LEVEL,
        "--log-level",
        envvar=LOG_LEVEL_ENV,
        help="Log level for structured logs on stderr",
    ),
):
    """Configure logging before any command runs."""
    configure_logging("dumble.cli", log_level=log_level)


# Register all commands
app.command()(build_cmd.build)
app.command()(build_cmd.check)
app.command()(plan_cmd.plan)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
