from __future__ import annotations

import json
import time
from typing import Any

from tabulate import tabulate


def normalize_errors(errors: list[Any] | None) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for e in errors or []:
        s = str(e).strip()
        if s and s not in seen:
            out.append(s)
            seen.add(s)
    return out


def build_cli_payload(
    *,
    command: str,
    version: str,
    config: str | None,
    started_at: float,
    data: Any,
    errors: list[Any] | None = None,
    ok: bool | None = None,
) -> dict[str, Any]:
    normalized_errors = normalize_errors(errors)
    resolved_ok = bool(ok) if ok is not None else (len(normalized_errors) == 0)
    return {
        "meta": {
            "tool": "filog",
            "version": version,
            "command": command,
            "schema": "filog.cli.result/v1",
            "timestamp": int(time.time()),
            "duration_ms": int(round((time.perf_counter() - started_at) * 1000)),
        },
        "ok": resolved_ok,
        "config": config,
        "data": data,
        "errors": normalized_errors,
    }


def render_payload(payload: dict[str, Any], *, fmt: str = "json", pretty: bool = False) -> str:
    mode = (fmt or "json").strip().lower()
    if mode == "table":
        return _render_table(payload)
    return serialize_payload(payload, pretty=pretty)


def serialize_payload(payload: dict[str, Any], *, pretty: bool = False) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2 if pretty else None)


def _render_table(payload: dict[str, Any]) -> str:
    rows: list[tuple[str, str]] = []

    meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
    rows.append(("command", _safe_str(meta.get("command"))))
    rows.append(("version", _safe_str(meta.get("version"))))
    rows.append(("ok", _safe_str(payload.get("ok"))))
    rows.append(("config", _safe_str(payload.get("config"))))
    rows.append(("duration_ms", _safe_str(meta.get("duration_ms"))))

    command = str(meta.get("command") or "")
    rows.extend(_command_summary_rows(command, payload.get("data")))

    errors = payload.get("errors")
    if isinstance(errors, list):
        rows.append(("errors_count", str(len(errors))))
        for i, err in enumerate(errors[:3], start=1):
            rows.append((f"error_{i}", _safe_str(err, max_len=160)))

    return tabulate(rows, headers=["Field", "Value"], tablefmt="github")


def _command_summary_rows(command: str, data: Any) -> list[tuple[str, str]]:
    if command == "send" and isinstance(data, dict):
        result = data.get("result") if isinstance(data.get("result"), dict) else {}
        return [
            ("log_level", _safe_str(data.get("logLevel"))),
            ("log_ticket", _safe_str(data.get("logTicket"))),
            ("target", _safe_str(result.get("target"))),
            ("status_code", _safe_str(result.get("status_code"))),
            ("failure", _safe_str(result.get("kind"))),
        ]

    if command == "route" and isinstance(data, dict):
        routes = data.get("routes") if isinstance(data.get("routes"), list) else []
        out: list[tuple[str, str]] = []
        for r in routes:
            if not isinstance(r, dict):
                continue
            if r.get("url"):
                value = f"{r.get('url')} ({r.get('scheme') or 'unsupported'})"
            else:
                value = "no transport"
            out.append((f"route_{r.get('logLevel')}", _safe_str(value)))
        return out

    return []


def _safe_str(value: Any, *, max_len: int = 120) -> str:
    if isinstance(value, (dict, list)):
        s = json.dumps(value, ensure_ascii=False)
    else:
        s = "null" if value is None else str(value)
    if len(s) <= max_len:
        return s
    return s[: max_len - 3] + "..."
