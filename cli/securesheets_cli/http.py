from __future__ import annotations

import os
from typing import Mapping, NoReturn

import typer
from securesheets_client import SecureSheetsError, SignedApiClient, format_error

from . import console
from .config import SECRET_ENV, Settings, client_options


def make_client(
        settings: Settings,
        *,
        endpoint_override: str | None = None,
        env: Mapping[str, str] | None = None,
        discover: bool = False,
) -> SignedApiClient:
    client = SignedApiClient()
    options = client_options(settings, env, endpoint_override=endpoint_override)
    if discover:
        client.configure_with_discovery(**options)
    else:
        client.configure(**options)
    return client


def fail(exc: SecureSheetsError, *, json_out: bool) -> NoReturn:
    if json_out:
        console.print_json(format_error(exc, secrets=[os.getenv(name) for name in SECRET_ENV]))
    else:
        console.err(f"{exc.code}: {exc.message}")
    raise typer.Exit(code=2)
