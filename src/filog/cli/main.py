from __future__ import annotations

import argparse
import dataclasses
import time
import uuid
from pathlib import Path
from typing import Any, Callable

from filog.core.config import CONFIG_ENV_VAR, LoggerConfig, default_config_path, load_config_file
from filog.core.errors import ConfigurationError
from filog.core.logger import Logger
from filog.core.models import LOG_LEVELS
from filog.core.transport import resolve_scheme, select_transport
from filog.utils.logging import DEFAULT_LOG_FILE, configure_logging, get_logger
from filog.utils.output import build_cli_payload, normalize_errors, render_payload
from filog.utils.version import get_version


class CliUsageError(Exception):
    pass


def _resolve_config_path(args: argparse.Namespace) -> Path:
    raw = getattr(args, "config", None)
    path = Path(raw) if raw else default_config_path()
    if path is None:
        raise CliUsageError(f"no config file given (use --config or set {CONFIG_ENV_VAR})")
    return path


def _load_config(args: argparse.Namespace) -> LoggerConfig:
    path = _resolve_config_path(args)
    try:
        return load_config_file(path)
    except ConfigurationError as e:
        raise CliUsageError(str(e)) from e


def _extract_errors(data: Any) -> list[str]:
    if not isinstance(data, dict):
        return []
    out: list[str] = []
    result = data.get("result")
    if isinstance(result, dict) and isinstance(result.get("error"), dict):
        err = result["error"]
        out.append(f"{err.get('kind')}: {err.get('name')}")
    errs = data.get("errors")
    if isinstance(errs, list):
        out.extend(normalize_errors(errs))
    return normalize_errors(out)


def _resolve_ok(data: Any, errors: list[str]) -> bool:
    if isinstance(data, dict) and isinstance(data.get("ok"), bool):
        return bool(data["ok"]) and len(errors) == 0
    return len(errors) == 0


def _configure_runtime_logging(args: argparse.Namespace) -> None:
    enable_file = not bool(getattr(args, "no_log_file", False))
    file_path = configure_logging(
        level=str(getattr(args, "log_level", "INFO")),
        log_file=str(getattr(args, "log_file", DEFAULT_LOG_FILE)),
        enable_file=enable_file,
    )
    logger = get_logger(__name__)
    if file_path:
        logger.debug("log file enabled: %s", file_path)
    else:
        logger.debug("log file disabled")


def _run_command(
    args: argparse.Namespace,
    *,
    command: str,
    runner: Callable[[], Any],
) -> int:
    _configure_runtime_logging(args)
    logger = get_logger(f"{__name__}.{command}")
    started = time.perf_counter()
    cli_version = get_version()
    config = getattr(args, "config", None)

    try:
        logger.info("command start: %s config=%s", command, config)
        data = runner()
        errors = _extract_errors(data)
        ok = _resolve_ok(data, errors)
        payload = build_cli_payload(
            command=command,
            version=cli_version,
            config=config,
            started_at=started,
            data=data,
            errors=errors,
            ok=ok,
        )
        logger.info("command done: %s ok=%s errors=%d", command, ok, len(errors))
        print(render_payload(payload, fmt=str(getattr(args, "format", "json")), pretty=bool(args.pretty)))
        return 0 if ok else 1
    except CliUsageError as e:
        logger.error("usage error: %s", e)
        payload = build_cli_payload(
            command=command,
            version=cli_version,
            config=config,
            started_at=started,
            data=None,
            errors=[str(e)],
            ok=False,
        )
        print(render_payload(payload, fmt="json", pretty=True))
        return 2
    except Exception as e:
        logger.exception("command failed: %s", command)
        payload = build_cli_payload(
            command=command,
            version=cli_version,
            config=config,
            started_at=started,
            data=None,
            errors=[f"{type(e).__name__}: {e}"],
            ok=False,
        )
        print(render_payload(payload, fmt="json", pretty=True))
        return 1


def send_log(args: argparse.Namespace) -> dict[str, Any]:
    config = dataclasses.replace(_load_config(args), blocking=True)
    if args.environment:
        config = dataclasses.replace(config, environment=args.environment)

    ticket = str(uuid.uuid4())
    body = {
        "logLevel": args.level,
        "logTicket": ticket,
        "errorDescription": args.message,
    }
    if args.event_code:
        body["eventCode"] = args.event_code

    with Logger(config) as client:
        result = client.write(body, verbose=bool(args.verbose)).result()

    return {
        "ok": result.ok,
        "logLevel": args.level,
        "logTicket": ticket,
        "result": result.to_dict(),
    }


def route_table(args: argparse.Namespace) -> dict[str, Any]:
    config = _load_config(args)
    routes: list[dict[str, Any]] = []
    errors: list[str] = []
    for level in LOG_LEVELS:
        t = select_transport(config.transports, level)
        if t is None:
            routes.append({"logLevel": level, "client_id": None, "url": None, "scheme": None})
            errors.append(f"no transport for level {level}")
            continue
        scheme = resolve_scheme(t.url)
        if scheme is None:
            errors.append(f"unsupported url for level {level}: {t.url}")
        routes.append({"logLevel": level, "client_id": t.client_id, "url": t.url, "scheme": scheme})
    return {"routes": routes, "errors": errors}


def _add_runtime_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        help=f"Logger config JSON file (default: ${CONFIG_ENV_VAR})",
    )
    parser.add_argument(
        "--format",
        choices=("json", "table"),
        default="json",
        help="Result display format (default: json)",
    )
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        default="WARNING",
        help="Console log level for local diagnostics (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=str(DEFAULT_LOG_FILE),
        help=f"Log file path (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Disable file logging and only log to console",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filog",
        description="filog: send error/event logs to a collection endpoint over HTTP or AMQP",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send one log entry and wait for the result")
    send.add_argument("-l", "--level", choices=LOG_LEVELS, default="ERROR", help="Log level (default: ERROR)")
    send.add_argument("-m", "--message", required=True, help="Error description to send")
    send.add_argument("--event-code", type=str, default=None, help="Event code (optional)")
    send.add_argument("--environment", type=str, default=None, help="Override the configured environment")
    send.add_argument("--verbose", action="store_true", help="Echo the description to stderr before sending")
    _add_runtime_options(send)
    send.set_defaults(func=lambda args: _run_command(args, command="send", runner=lambda: send_log(args)))

    route = subparsers.add_parser("route", help="Show which transport each log level is routed to")
    _add_runtime_options(route)
    route.set_defaults(func=lambda args: _run_command(args, command="route", runner=lambda: route_table(args)))

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
