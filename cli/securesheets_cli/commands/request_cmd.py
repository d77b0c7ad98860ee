from __future__ import annotations

import typer
from rich.table import Table
from securesheets_client import SecureSheetsError

from .. import console
from ..config import load_settings
from ..formatting import format_age, parse_pairs
from ..http import fail, make_client

app = typer.Typer(help="Signed requests against the configured endpoint.")


def _params(pairs: list[str] | None) -> dict[str, str]:
    try:
        return parse_pairs(pairs)
    except ValueError as e:
        console.err(str(e))
        raise typer.Exit(code=2)


def _render(data, *, json_out: bool) -> None:
    if json_out or not isinstance(data, (dict, list)):
        console.print_json(data)
        return
    rows = data if isinstance(data, list) else [data]
    if not rows or not all(isinstance(r, dict) for r in rows):
        console.print_json(data)
        return
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(str(key))
    table = Table(show_header=True, header_style="bold")
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*[str(row.get(col, "")) for col in columns])
    console.print(table)


@app.command("get", help="Signed GET, e.g. `securesheets get getData -p sheet=Sheet2`.")
def get(
        action: str = typer.Argument(..., help="Server action name."),
        param: list[str] = typer.Option(None, "-p", "--param", help="Query parameter key=value (repeatable)."),
        no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
        timeout: float | None = typer.Option(None, "--timeout", help="Request timeout in seconds."),
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    params = _params(param)
    client = None
    try:
        client = make_client(load_settings(), endpoint_override=endpoint)
        result = client.get(action, params, use_cache=not no_cache, timeout=timeout)
        status = client.rate_limit_status()
    except SecureSheetsError as e:
        fail(e, json_out=json_out)
    finally:
        if client is not None:
            client.close()

    _render(result.data, json_out=json_out)
    if not json_out and status["server"]["remaining"] is not None:
        console.info(
            f"server remaining: {status['server']['remaining']} "
            f"(client window resets in {format_age(status['client']['resets_in'])})"
        )


@app.command("post", help="Signed POST with CSRF token, e.g. `securesheets post getData -d sheet=Sheet2`.")
def post(
        action: str = typer.Argument(..., help="Server action name."),
        field: list[str] = typer.Option(None, "-d", "--data", help="Body field key=value (repeatable)."),
        timeout: float | None = typer.Option(None, "--timeout", help="Request timeout in seconds."),
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    body = _params(field)
    client = None
    try:
        client = make_client(load_settings(), endpoint_override=endpoint)
        result = client.post(action, body, timeout=timeout)
    except SecureSheetsError as e:
        fail(e, json_out=json_out)
    finally:
        if client is not None:
            client.close()

    _render(result.data, json_out=json_out)
