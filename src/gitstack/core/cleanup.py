"""Compensating actions for multi-step operations.

An operation that changes git before it commits metadata registers a reversal
for each change. If the operation exits early, the reversals run newest-first.
On success the operation commits, then calls cancel().

Usage:
    tx = store.write_transaction()
    with Cleanup(tx.abort) as cleanup:
        git.create_and_checkout_branch(cwd, "feature", sha)
        cleanup.add(lambda: git.delete_branch(cwd, "feature", force=True))
        ...
        tx.commit()
        cleanup.cancel()
"""

import logging
from collections.abc import Callable
from types import TracebackType

logger = logging.getLogger(__name__)


class Cleanup:
    """Stack of reversal actions owned by a single operation."""

    def __init__(self, *actions: Callable[[], object]) -> None:
        self._actions: list[Callable[[], object]] = list(actions)
        self._done = False

    def add(self, action: Callable[[], object]) -> None:
        """Register a reversal action; it runs before every earlier one."""
        self._actions.append(action)

    def cancel(self) -> None:
        """Discard all registered actions without running them."""
        self._actions.clear()
        self._done = True

    def run(self) -> None:
        """Run every registered action in reverse registration order.

        A failing action is logged and the remaining actions still run. Calling
        run() more than once has no further effect.
        """
        if self._done:
            return
        self._done = True

        while self._actions:
            action = self._actions.pop()
            try:
                action()
            except Exception:
                logger.exception("cleanup action failed")

    def __enter__(self) -> "Cleanup":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc_value is not None:
            logger.debug("running cleanup after error: %s", exc_value)
        self.run()
