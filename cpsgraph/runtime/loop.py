"""
Single-threaded callback runtime for generated programs.

Generated code never awaits: it hands work and a callback to the runtime
and returns.  Blocking work runs in the event loop's default executor;
every callback runs on the loop thread, one at a time, so the join
counters in generated code need no locking.

    submit(work, callback)   run work() off-thread, then callback(err, result)
    defer(fn, *args)         run fn(*args) on the next loop iteration
    run()                    drive the loop until no work is pending
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)

_loop: Optional[asyncio.AbstractEventLoop] = None
_pending: Set["asyncio.Future[Any]"] = set()


def get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def _track(fut: "asyncio.Future[Any]") -> None:
    _pending.add(fut)
    fut.add_done_callback(_pending.discard)


async def _call_soon(fn: Callable[..., Any], args: tuple) -> None:
    fn(*args)


async def _complete(work: Callable[[], Any], callback: Callable[..., Any]) -> None:
    try:
        result = await get_loop().run_in_executor(None, work)
    except (OSError, ValueError) as exc:
        callback(exc, None)
        return
    callback(None, result)


def defer(fn: Callable[..., Any], *args: Any) -> None:
    _track(get_loop().create_task(_call_soon(fn, args)))


def submit(work: Callable[[], Any], callback: Callable[..., Any]) -> None:
    """
    Run `work` in the executor, then `callback(err, result)` on the loop.

    I/O and decoding failures (OSError, ValueError) go to the callback as `err`;
    anything else propagates out of run().
    """
    _track(get_loop().create_task(_complete(work, callback)))


def run() -> None:
    """Run until every submitted operation, and the ones its callbacks submit, is done."""
    loop = get_loop()
    while _pending:
        batch = list(_pending)
        logger.debug("draining %d pending operation(s)", len(batch))
        # Exceptions raised by callbacks propagate out of run().
        loop.run_until_complete(asyncio.gather(*batch))
