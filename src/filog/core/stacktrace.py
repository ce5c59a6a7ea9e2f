from __future__ import annotations

import re
import traceback
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Mapping


ANONYMOUS_FILE = "<anonymous>"
UNKNOWN_METHOD = "<unknown>"
FRAME_INDENT = "   "

_FILE_URI = re.compile(r"^file:", re.IGNORECASE)
_SOURCE_EXT = re.compile(r"\.(py|pyw|pyx|js|jsx|ts|tsx|mjs|cjs)$", re.IGNORECASE)

# Python: '  File "/app/x.py", line 12, in handler'
_PY_FRAME = re.compile(r'^\s*File "(?P<file>[^"]+)", line (?P<line>\d+)(?:, in (?P<method>.+?))?\s*$')
# V8: '    at handler (/app/x.js:12:5)' / '    at /app/x.js:12:5' / '    at <anonymous>'
_V8_FRAME = re.compile(
    r"^\s*at (?:(?P<method>.*?) \()?(?P<file>[^()]+?)(?::(?P<line>\d+))?(?::(?P<col>\d+))?\)?\s*$"
)


@dataclass(frozen=True)
class StackFrame:
    file: str
    method_name: str = UNKNOWN_METHOD
    line_number: int | None = None
    column: int | None = None

    def location(self) -> str:
        out = self.file
        if self.line_number:
            out += f":{self.line_number}"
        if self.column:
            out += f":{self.column}"
        return out


def parse_stack(text: str | None) -> list[StackFrame]:
    """
    Parse a textual stack trace into frames.

    Understands Python traceback text and V8-style "at ..." lines; any
    other line (headers, source excerpts, the final message) is skipped.
    """
    frames: list[StackFrame] = []
    for raw in (text or "").splitlines():
        m = _PY_FRAME.match(raw)
        if m:
            frames.append(
                StackFrame(
                    file=m.group("file"),
                    method_name=m.group("method") or UNKNOWN_METHOD,
                    line_number=int(m.group("line")),
                )
            )
            continue
        m = _V8_FRAME.match(raw)
        if m:
            frames.append(
                StackFrame(
                    file=m.group("file").strip(),
                    method_name=(m.group("method") or "").strip() or UNKNOWN_METHOD,
                    line_number=int(m.group("line")) if m.group("line") else None,
                    column=int(m.group("col")) if m.group("col") else None,
                )
            )
    return frames


def frames_from_traceback(tb: TracebackType | None) -> list[StackFrame]:
    frames: list[StackFrame] = []
    for fs in traceback.extract_tb(tb):
        colno = getattr(fs, "colno", None)
        frames.append(
            StackFrame(
                file=fs.filename,
                method_name=fs.name or UNKNOWN_METHOD,
                line_number=fs.lineno,
                column=colno + 1 if colno is not None else None,
            )
        )
    return frames


def is_app_frame(frame: StackFrame) -> bool:
    f = frame.file or ""
    return bool(_FILE_URI.match(f)) or bool(_SOURCE_EXT.search(f)) or f == ANONYMOUS_FILE


def is_error_like(value: Any) -> bool:
    if isinstance(value, BaseException):
        return True
    if isinstance(value, (str, bytes)) or value is None:
        return False
    if isinstance(value, Mapping):
        return "message" in value and ("name" in value or "stack" in value)
    return hasattr(value, "message") and (hasattr(value, "name") or hasattr(value, "stack"))


def error_name_and_message(err: Any) -> tuple[str, str]:
    if isinstance(err, BaseException):
        return type(err).__name__, str(err)
    if isinstance(err, Mapping):
        return str(err.get("name") or "Error"), str(err.get("message") or "")
    return str(getattr(err, "name", None) or "Error"), str(getattr(err, "message", None) or "")


def extract_frames(err: Any) -> list[StackFrame]:
    if isinstance(err, BaseException):
        return frames_from_traceback(err.__traceback__)
    stack = err.get("stack") if isinstance(err, Mapping) else getattr(err, "stack", None)
    if stack is None:
        return []
    if not isinstance(stack, str):
        raise TypeError(f"stack must be a string, got {type(stack).__name__}")
    return parse_stack(stack)


def describe_error(err: Any) -> str:
    """
    Flatten an Error-like value into the wire description:

        ValueError: boom
           [handler] /app/service.py:12
           [main] /app/run.py:3
    """
    name, message = error_name_and_message(err)
    lines = [f"{name}: {message}"]
    for frame in extract_frames(err):
        if is_app_frame(frame):
            lines.append(f"{FRAME_INDENT}[{frame.method_name}] {frame.location()}")
    return "\n".join(lines).rstrip()
