# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""After-commit side effects.

Side effects that must only happen once a transaction has committed
(delivery, eligibility checks) are scheduled here as an ordered list of
named closures. They run in the background, each failure is logged on
its own, and nothing is retried or reported to the caller.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

Hook = tuple[str, Callable[[], Awaitable[object]]]


class AfterCommitHooks:
    """Runs post-commit hooks as tracked background tasks.

    Example:
        hooks.schedule([
            ("deliver_feedback", lambda: gateway.send_message(...)),
            ("check_level_up", lambda: learning.check_level_up_eligibility(user_id)),
        ])
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, hooks: Sequence[Hook]) -> asyncio.Task[None]:
        """Start running hooks in order without awaiting them.

        Args:
            hooks: (name, zero-argument coroutine function) pairs.

        Returns:
            The background task, for shutdown draining and tests.
        """
        task = asyncio.create_task(self._run(list(hooks)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, hooks: list[Hook]) -> None:
        for name, hook in hooks:
            try:
                await hook()
            except Exception:
                logger.exception("After-commit hook failed: %s", name)

    async def drain(self) -> None:
        """Wait for all scheduled hooks to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
