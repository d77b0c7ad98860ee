from __future__ import annotations

import os

import typer

from .. import console
from ..config import SETTING_KEYS, coerce_setting, config_path, default_settings, load_settings, normalize_endpoint, save_settings

app = typer.Typer(help="Manage local settings (~/.config/securesheets/config.toml). Secrets stay in the environment.")


@app.command("init")
def init_settings(
        force: bool = typer.Option(False, "--force", help="Overwrite existing config."),
        endpoint: str = typer.Option(
            ...,
            "--endpoint",
            prompt="Apps Script endpoint",
            help="Web app URL like https://script.google.com/macros/s/<id>/exec",
        ),
        origin: str = typer.Option("", "--origin", help="Origin sent with every request."),
):
    path = config_path()
    if os.path.exists(path) and not force:
        console.info(f"Config already exists: {path}")
        console.info("Use --force to overwrite.")
        return

    settings = default_settings()
    settings.endpoint = normalize_endpoint(endpoint)
    settings.origin = origin.strip()
    if not settings.endpoint:
        console.err("Endpoint cannot be empty.")
        raise typer.Exit(code=2)
    saved = save_settings(settings)
    console.ok(f"Config written: {saved}")


@app.command("show")
def show_settings():
    settings = load_settings()
    token_state = "(set)" if os.getenv("API_TOKEN") else "(empty)"
    secret_state = "(set)" if os.getenv("HMAC_SECRET") else "(empty)"
    for key in SETTING_KEYS:
        console.console.print(f"{key}={getattr(settings, key)}")
    console.console.print(f"API_TOKEN={token_state} HMAC_SECRET={secret_state}")


@app.command("get")
def get_setting(
        key: str = typer.Argument(..., help="Setting key, e.g. endpoint or max_requests."),
):
    settings = load_settings()
    k = key.strip().lower()
    if k not in SETTING_KEYS:
        console.err(f"Unknown setting: {key}")
        raise typer.Exit(code=2)
    console.console.print(str(getattr(settings, k)))


@app.command("set")
def set_setting(
        key: str = typer.Argument(..., help="Setting key."),
        value: str = typer.Argument(..., help="New value."),
):
    settings = load_settings()
    k = key.strip().lower()
    if k not in SETTING_KEYS:
        console.err(f"Unknown setting: {key}. Tokens and secrets are read from the environment only.")
        raise typer.Exit(code=2)
    try:
        setattr(settings, k, coerce_setting(k, value))
    except ValueError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
    saved = save_settings(settings)
    console.ok(f"Settings updated: {saved}")
