from __future__ import annotations

from typer.testing import CliRunner

from securesheets_cli import config, main


def _use_tmp_config(tmp_path, monkeypatch) -> None:
    def _config_dir(_: str) -> str:
        return str(tmp_path)

    monkeypatch.setattr(config, "user_config_dir", _config_dir)


def test_settings_init_and_set_round_trip(tmp_path, monkeypatch) -> None:
    _use_tmp_config(tmp_path, monkeypatch)
    runner = CliRunner()

    result = runner.invoke(main.app, ["settings", "init", "--endpoint", "script.example/exec/", "--origin", "https://shop.example"])
    assert result.exit_code == 0
    result = runner.invoke(main.app, ["settings", "set", "max_requests", "25"])
    assert result.exit_code == 0
    result = runner.invoke(main.app, ["settings", "set", "enable_csrf", "false"])
    assert result.exit_code == 0

    settings = config.load_settings()
    assert settings.endpoint == "https://script.example/exec"
    assert settings.origin == "https://shop.example"
    assert settings.max_requests == 25
    assert settings.enable_csrf is False

    result = runner.invoke(main.app, ["settings", "get", "max_requests"])
    assert result.exit_code == 0
    assert "25" in result.output


def test_settings_refuse_secrets(tmp_path, monkeypatch) -> None:
    _use_tmp_config(tmp_path, monkeypatch)
    runner = CliRunner()
    result = runner.invoke(main.app, ["settings", "set", "secret", "S"])
    assert result.exit_code == 2
    assert not tmp_path.joinpath("config.toml").exists()


def test_settings_reject_bad_boolean(tmp_path, monkeypatch) -> None:
    _use_tmp_config(tmp_path, monkeypatch)
    result = CliRunner().invoke(main.app, ["settings", "set", "enable_nonce", "maybe"])
    assert result.exit_code == 2


def test_saved_config_has_no_secrets(tmp_path, monkeypatch) -> None:
    _use_tmp_config(tmp_path, monkeypatch)
    settings = config.default_settings()
    settings.endpoint = "https://script.example/exec"
    path = config.save_settings(settings)
    contents = tmp_path.joinpath("config.toml").read_text(encoding="utf-8")

    assert path.endswith("config.toml")
    assert 'endpoint = "https://script.example/exec"' in contents
    assert "token" not in contents
    assert "secret" not in contents


def test_client_options_take_secrets_from_env() -> None:
    settings = config.default_settings()
    settings.endpoint = "https://file.example/exec"
    env = {"API_TOKEN": "T", "HMAC_SECRET": "S", "SHEETS_BASE_URL": "https://env.example/exec"}

    options = config.client_options(settings, env)
    assert options["endpoint"] == "https://env.example/exec"
    assert options["token"] == "T"
    assert options["secret"] == "S"

    options = config.client_options(settings, env, endpoint_override="override.example/exec")
    assert options["endpoint"] == "https://override.example/exec"


def test_load_settings_ignores_bad_values(tmp_path, monkeypatch) -> None:
    _use_tmp_config(tmp_path, monkeypatch)
    tmp_path.joinpath("config.toml").write_text(
        '\n'.join(['endpoint = "https://script.example/exec"', 'max_requests = "lots"', "timeout_s = 10", ""]),
        encoding="utf-8",
    )
    settings = config.load_settings()
    assert settings.endpoint == "https://script.example/exec"
    assert settings.max_requests == 100
    assert settings.timeout_s == 10.0
