import logging

import pytest

from sales_config import EngineSettings, configure_logging, load_settings

ENV_VARS = ("SALES_ACTIVE_WINDOW_DAYS", "SALES_LOG_LEVEL", "SALES_STRICT_RECONCILIATION")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # setenv first so teardown also removes values that load_dotenv() wrote
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_defaults(tmp_path):
    assert load_settings(tmp_path) == EngineSettings()


def test_reads_env_file(tmp_path):
    (tmp_path / ".env").write_text(
        "SALES_ACTIVE_WINDOW_DAYS=60\nSALES_LOG_LEVEL=debug\nSALES_STRICT_RECONCILIATION=yes\n",
        encoding="utf-8",
    )
    settings = load_settings(tmp_path)
    assert settings == EngineSettings(active_window_days=60, log_level="DEBUG", strict_reconciliation=True)


def test_environment_wins_over_env_file(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("SALES_ACTIVE_WINDOW_DAYS=60\n", encoding="utf-8")
    monkeypatch.setenv("SALES_ACTIVE_WINDOW_DAYS", "30")
    assert load_settings(tmp_path).active_window_days == 30


@pytest.mark.parametrize(
    "name, value",
    [
        ("SALES_ACTIVE_WINDOW_DAYS", "ninety"),
        ("SALES_ACTIVE_WINDOW_DAYS", "-5"),
        ("SALES_LOG_LEVEL", "LOUD"),
        ("SALES_STRICT_RECONCILIATION", "maybe"),
    ],
)
def test_invalid_values_name_the_variable(tmp_path, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        load_settings(tmp_path)


def test_configure_logging_sets_level(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    configure_logging(EngineSettings(log_level="WARNING"))
    assert root.level == logging.WARNING
