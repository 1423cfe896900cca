import json
import pydantic
import pytest
import structlog
from recordbook.config import Config, load_config


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


def test_defaults(monkeypatch):
    for name in ("DATA_FILE", "ATOMIC_WRITES", "LOG_LEVEL"):
        monkeypatch.delenv(f"RECORDBOOK_{name}", raising=False)
    config = Config()
    assert config.data_file == "students.txt"
    assert config.atomic_writes is False
    assert config.low_stock_threshold == 5
    assert config.log_level == "warning"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("RECORDBOOK_DATA_FILE", "/tmp/roster.txt")
    monkeypatch.setenv("RECORDBOOK_ATOMIC_WRITES", "true")
    monkeypatch.setenv("RECORDBOOK_LOG_LEVEL", "DEBUG")
    config = Config()
    assert config.data_file == "/tmp/roster.txt"
    assert config.atomic_writes is True
    assert config.log_level == "debug"


def test_explicit_overrides_env(monkeypatch):
    monkeypatch.setenv("RECORDBOOK_DATA_FILE", "/tmp/roster.txt")
    assert load_config(data_file="other.txt").data_file == "other.txt"


@pytest.mark.parametrize(
    "overrides",
    [{"log_level": "loud"}, {"log_format": "xml"}, {"low_stock_threshold": -1}],
)
def test_bad_values(overrides):
    with pytest.raises(pydantic.ValidationError):
        Config(**overrides)


def test_json_log_file(tmp_path):
    log_file = tmp_path / "recordbook.log"
    load_config(log_file=str(log_file), log_format="json", log_level="info")
    log = structlog.get_logger()
    log.debug("hidden")
    log.info("visible", id=3)
    lines = log_file.read_text().splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["event"] == "visible"
    assert entry["id"] == 3
    assert entry["level"] == "info"
