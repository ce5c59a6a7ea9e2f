import time

from filog.utils.output import build_cli_payload, normalize_errors, render_payload


def _send_payload():
    return build_cli_payload(
        command="send",
        version="test",
        config="filog.json",
        started_at=time.perf_counter(),
        data={
            "ok": True,
            "logLevel": "ERROR",
            "logTicket": "t-1",
            "result": {"ok": True, "target": "https://x/y", "kind": None, "status_code": 202, "error": None},
        },
        errors=[],
        ok=True,
    )


def test_render_payload_json_contains_schema():
    out = render_payload(_send_payload(), fmt="json", pretty=False)
    assert '"schema": "filog.cli.result/v1"' in out
    assert '"command": "send"' in out


def test_render_payload_table_contains_send_summary():
    out = render_payload(_send_payload(), fmt="table", pretty=False)
    assert "Field" in out
    assert "log_ticket" in out
    assert "202" in out


def test_normalize_errors_dedupes_and_drops_blank():
    assert normalize_errors(["a", " a ", "", None, "b"]) == ["a", "None", "b"]
