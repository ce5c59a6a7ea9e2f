from __future__ import annotations

import asyncio
import sys
import threading
from concurrent.futures import wait
from typing import TYPE_CHECKING, Any, Callable, Protocol

from filog.utils.logging import get_logger

if TYPE_CHECKING:
    from filog.core.logger import Logger


logger = get_logger(__name__)

ErrorHandler = Callable[[BaseException], None]

UNCAUGHT_EXCEPTION = "uncaughtException"
UNHANDLED_REJECTION = "unhandledRejection"


class ErrorHooks(Protocol):
    def on_uncaught(self, handler: ErrorHandler) -> None: ...

    def on_unhandled_rejection(self, handler: ErrorHandler) -> None: ...


class ProcessHooks:
    """
    Interpreter-wide hooks.

    on_uncaught:            sys.excepthook and threading.excepthook
    on_unhandled_rejection: the exception handler of `loop` (errors of
                            tasks and callbacks nobody awaited); skipped
                            when no loop is given

    Each hook calls the handler first and then the hook it replaced.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self.loop = loop

    def on_uncaught(self, handler: ErrorHandler) -> None:
        previous = sys.excepthook

        def _excepthook(exc_type, exc, tb):
            if exc is not None and not issubclass(exc_type, KeyboardInterrupt):
                handler(exc)
            previous(exc_type, exc, tb)

        sys.excepthook = _excepthook

        previous_thread_hook = threading.excepthook

        def _thread_excepthook(args):
            if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
                handler(args.exc_value)
            previous_thread_hook(args)

        threading.excepthook = _thread_excepthook

    def on_unhandled_rejection(self, handler: ErrorHandler) -> None:
        loop = self.loop
        if loop is None:
            logger.debug("no event loop given, unhandled rejection hook not installed")
            return

        previous = loop.get_exception_handler()

        def _loop_exception_handler(lp: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
            exc = context.get("exception")
            if not isinstance(exc, BaseException):
                exc = RuntimeError(str(context.get("message") or "unhandled error in event loop"))
            handler(exc)
            if previous is not None:
                previous(lp, context)
            else:
                lp.default_exception_handler(context)

        loop.set_exception_handler(_loop_exception_handler)


def install_error_listener(client: "Logger", hooks: ErrorHooks | None = None) -> ErrorHooks:
    hooks = hooks if hooks is not None else ProcessHooks()
    flush_timeout = client.config.flush_timeout

    def _report(event_code: str, *, flush: bool) -> ErrorHandler:
        def _handler(exc: BaseException) -> None:
            future = client.error(exc, event_code=event_code, print_out=True)
            # runs on the event loop thread for rejections; only block when the process is about to exit
            if not flush:
                return
            done, _ = wait([future], timeout=flush_timeout)
            if not done:
                logger.warning("[filog] %s report still pending after %ss", event_code, flush_timeout)

        return _handler

    hooks.on_uncaught(_report(UNCAUGHT_EXCEPTION, flush=True))
    hooks.on_unhandled_rejection(_report(UNHANDLED_REJECTION, flush=False))
    return hooks
