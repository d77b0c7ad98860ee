from __future__ import annotations

import typer

from .commands import health_cmd, request_cmd, settings_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="securesheets",
        help="SecureSheets signed API client",
        no_args_is_help=True,
    )

    app.add_typer(settings_cmd.app, name="settings")
    app.command("health")(health_cmd.health)
    app.command("check")(health_cmd.check)
    app.command("discover")(health_cmd.discover)
    app.command("get", help="Signed GET, e.g. `securesheets get getData -p sheet=Sheet2`.")(request_cmd.get)
    app.command("post", help="Signed POST with CSRF token.")(request_cmd.post)

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
