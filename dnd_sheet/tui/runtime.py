"""asyncio driver for a Router: event queue, Command execution and blink ticks."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .components import render_frame
from .events import Tick

if TYPE_CHECKING:
    from .commands import Command
    from .router import Router

logger = logging.getLogger(__name__)


class Runtime:
    """Feeds events to a Router one at a time.

    Commands returned by the Router run as asyncio tasks: a delayed Command
    sleeps first, then its effect runs on a worker thread so store calls never
    block the loop. Every result goes back on the queue as an ordinary event.
    Nothing is ever cancelled except on shutdown.
    """

    def __init__(self, router: Router, *, blink: bool = True):
        self.router = router
        self.settings = router.settings
        self.blink = blink
        self.queue: asyncio.Queue[object] = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        # Undelayed Commands still running; ``settle`` waits for these.
        self._busy = 0

    @property
    def running(self) -> bool:
        return self.router.running

    def feed(self, event: object) -> None:
        self.queue.put_nowait(event)

    # ── Commands ───────────────────────────────────────────────────

    def _dispatch(self, event: object) -> None:
        if event is None:
            return
        for command in self.router.handle(event):
            self._schedule(command)

    def _schedule(self, command: Command) -> None:
        immediate = command.delay <= 0
        if immediate:
            self._busy += 1
        logger.debug("Command %s scheduled (delay=%.1fs)", command.label, command.delay)
        task = asyncio.create_task(self._execute(command, immediate))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, command: Command, immediate: bool) -> None:
        try:
            if not immediate:
                await asyncio.sleep(command.delay)
            result = await asyncio.to_thread(command.execute)
        finally:
            if immediate:
                self._busy -= 1
        self.queue.put_nowait(result)

    # ── Loop ───────────────────────────────────────────────────────

    async def start(self) -> None:
        """Show the first screen and settle its start-up work."""
        for command in self.router.start():
            self._schedule(command)
        await self.settle()

    async def settle(self) -> None:
        """Process queued events until no undelayed Command is outstanding.

        Delayed Commands (status clears) keep running in the background and
        are picked up by a later ``settle`` or by ``run``.
        """
        while self.router.running and (self._busy or not self.queue.empty()):
            self._dispatch(await self.queue.get())

    async def send(self, event: object) -> None:
        self.feed(event)
        await self.settle()

    async def run(self) -> None:
        """Serve until the Router stops (Quit / ctrl+c)."""
        await self.start()
        ticker = asyncio.create_task(self._tick()) if self.blink else None
        try:
            while self.router.running:
                self._dispatch(await self.queue.get())
        finally:
            if ticker is not None:
                ticker.cancel()
            await self.close()
        logger.info("Runtime stopped")

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.settings.DND_BLINK_INTERVAL)
            self.feed(Tick())

    # ── Output ─────────────────────────────────────────────────────

    def render(self, styled: bool = True) -> str:
        session = self.router.session
        return render_frame(self.router.view(), session.width, session.height, styled=styled)
