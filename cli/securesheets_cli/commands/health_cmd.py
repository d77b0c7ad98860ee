from __future__ import annotations

import typer
from securesheets_client import SecureSheetsError

from .. import console
from ..config import load_settings
from ..http import fail, make_client

app = typer.Typer(help="Connectivity and server discovery checks.")


@app.command("health")
def health(
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    client = None
    try:
        client = make_client(load_settings(), endpoint_override=endpoint)
        result = client.health_check()
    except SecureSheetsError as e:
        fail(e, json_out=json_out)
    finally:
        if client is not None:
            client.close()

    if json_out:
        console.print_json(result.data)
        return
    status = result.data.get("status") if isinstance(result.data, dict) else None
    if status in ("online", "success", "ok"):
        console.ok(f"Server is {status}.")
    else:
        console.warn(f"Server returned unexpected status: {status}")


@app.command("check")
def check(
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    client = None
    try:
        client = make_client(load_settings(), endpoint_override=endpoint)
        report = client.test_connection()
    except SecureSheetsError as e:
        fail(e, json_out=json_out)
    finally:
        if client is not None:
            client.close()

    if json_out:
        console.print_json(report)
    else:
        for name, test in report["tests"].items():
            if test["passed"]:
                console.ok(f"{name}: {test['message']}")
            else:
                console.warn(f"{name}: {test['message']}")
    if not report["success"]:
        raise typer.Exit(code=1)


@app.command("discover")
def discover(
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    client = None
    try:
        client = make_client(load_settings(), endpoint_override=endpoint)
        info = client.discover()
    except SecureSheetsError as e:
        fail(e, json_out=json_out)
    finally:
        if client is not None:
            client.close()

    if info is None:
        console.warn("Auto-discovery failed; the client will use manual configuration.")
        raise typer.Exit(code=1)
    if json_out:
        console.print_json(info.raw)
        return
    console.info(f"version: {info.version or '-'}")
    console.info(f"format: ?{info.discovery_format}=config")
    if info.limits:
        for key in sorted(info.limits):
            console.info(f"limits.{key}: {info.limits[key]}")
