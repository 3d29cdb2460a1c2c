from __future__ import annotations

from contextvars import ContextVar

import pytest

from mdflux.core.exceptions import ConfigError
from mdflux.ui.cli import state as state_module


@pytest.fixture(autouse=True)
def fresh_state(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(state_module, "_STATE_VAR", ContextVar("test_cli_state", default=None))


def _chained_error() -> ConfigError:
    try:
        raise ConfigError("Invalid configuration") from ValueError("scale is not a number")
    except ConfigError as exc:
        return exc


def test_warning_is_printed_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    state_module.emit_warning("page may print early")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "warning: page may print early" in captured.err


def test_debug_mode_shows_exception_type_and_causes(capsys: pytest.CaptureFixture[str]) -> None:
    state_module.set_cli_state(debug=True)

    state_module.emit_error("Invalid configuration", exception=_chained_error())

    err = capsys.readouterr().err
    assert "error: Invalid configuration" in err
    assert "type: ConfigError" in err
    assert "caused by:" in err
    assert "scale is not a number" in err
    assert state_module.debug_enabled() is True


def test_causes_are_hidden_without_debug(capsys: pytest.CaptureFixture[str]) -> None:
    state_module.emit_error("Invalid configuration", exception=_chained_error())

    err = capsys.readouterr().err
    assert "error: Invalid configuration" in err
    assert "caused by:" not in err
    assert state_module.debug_enabled() is False
