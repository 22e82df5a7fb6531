from __future__ import annotations

import pytest

from gapedit.runtime import EditorSettings


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GAPEDIT_HISTORY_LIMIT", raising=False)
    monkeypatch.delenv("GAPEDIT_OVERWRITE_ON_SAVE", raising=False)

    settings = EditorSettings.from_env()

    assert settings.history_limit is None
    assert settings.overwrite_on_save is True


def test_values_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GAPEDIT_HISTORY_LIMIT", "50")
    monkeypatch.setenv("GAPEDIT_OVERWRITE_ON_SAVE", "no")

    settings = EditorSettings.from_env()

    assert settings.history_limit == 50
    assert settings.overwrite_on_save is False


@pytest.mark.parametrize("raw", ["many", "-3"])
def test_invalid_history_limit(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("GAPEDIT_HISTORY_LIMIT", raw)

    with pytest.raises(ValueError, match="GAPEDIT_HISTORY_LIMIT"):
        EditorSettings.from_env()
