import json
from types import SimpleNamespace

import pytest

from filog.cli.main import CliUsageError, _load_config, main
from filog.core.config import CONFIG_ENV_VAR


def _write_config(tmp_path, url: str, log_type: str = "ANY"):
    path = tmp_path / "filog.json"
    path.write_text(
        json.dumps(
            {
                "source": {"app_name": "cli-test"},
                "environment": "test",
                "transports": [{"client_id": "cli", "url": url, "logType": log_type}],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_load_config_requires_path(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    with pytest.raises(CliUsageError, match="no config file given"):
        _load_config(SimpleNamespace(config=None))


def test_load_config_invalid_json_is_usage_error(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{invalid json}", encoding="utf-8")

    with pytest.raises(CliUsageError, match="invalid JSON"):
        _load_config(SimpleNamespace(config=str(path)))


def test_send_delivers_log(tmp_path, collector, capsys):
    path = _write_config(tmp_path, collector.url)

    code = main(["send", "-c", str(path), "-l", "WARNING", "-m", "disk almost full", "--event-code", "DISK-90", "--no-log-file"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is True
    assert out["meta"]["schema"] == "filog.cli.result/v1"
    assert out["data"]["result"]["status_code"] == 200

    body = collector.received[0]["body"]
    assert body["logLevel"] == "WARNING"
    assert body["eventCode"] == "DISK-90"
    assert body["errorDescription"] == "disk almost full"
    assert body["environment"] == "test"
    assert body["logTicket"] == out["data"]["logTicket"]


def test_send_uses_config_from_env(tmp_path, collector, capsys, monkeypatch):
    path = _write_config(tmp_path, collector.url)
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert main(["send", "-m", "from env", "--no-log-file"]) == 0
    assert collector.received[0]["body"]["logLevel"] == "ERROR"
    capsys.readouterr()


def test_send_connection_failure_exit_code(tmp_path, closed_port_url, capsys):
    path = _write_config(tmp_path, closed_port_url)

    code = main(["send", "-c", str(path), "-m", "lost", "--no-log-file"])

    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is False
    assert out["data"]["result"]["kind"] == "connectivity"


def test_send_missing_config_exit_code(tmp_path, capsys):
    code = main(["send", "-c", str(tmp_path / "missing.json"), "-m", "x", "--no-log-file"])

    assert code == 2
    out = json.loads(capsys.readouterr().out)
    assert "config file not found" in out["errors"][0]


def test_route_reports_unrouted_levels(tmp_path, capsys):
    path = _write_config(tmp_path, "https://errors.example.test/logs", log_type="ERROR")

    code = main(["route", "-c", str(path), "--no-log-file"])

    assert code == 1
    out = json.loads(capsys.readouterr().out)
    routes = {r["logLevel"]: r for r in out["data"]["routes"]}
    assert routes["ERROR"]["scheme"] == "http"
    assert routes["DEBUG"]["url"] is None
    assert "no transport for level DEBUG" in out["errors"]


def test_route_table_format(tmp_path, capsys):
    path = _write_config(tmp_path, "amqp://mq.example.test/")

    assert main(["route", "-c", str(path), "--format", "table", "--no-log-file"]) == 0
    out = capsys.readouterr().out
    assert "Field" in out
    assert "route_ERROR" in out
