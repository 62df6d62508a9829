import asyncio

from .engine import BookmarkEngine
from .errors import BookmarksError
from .logger import logger


class Scheduler:
    """Runs a bookmarks chain right after bootstrap and then on every tick.

    `stop` must not be called from two places at once.
    """

    def __init__(self, engine: BookmarkEngine, interval: float | None = None, resume=False):
        self.engine = engine
        self.interval = engine.interval if interval is None else interval
        self.resume = resume
        self.chains: set[asyncio.Task] = set()
        self._timer: asyncio.Task | None = None
        self._stop: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def _launch(self) -> asyncio.Task:
        task = asyncio.create_task(self.engine.run_chain(self.resume))
        self.chains.add(task)
        task.add_done_callback(self._on_chain_done)
        return task

    def _on_chain_done(self, task: asyncio.Task):
        self.chains.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("Bookmarks chain crashed")

    async def _tick_loop(self, stop: asyncio.Event):
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                self._launch()

    async def start(self):
        if self.running:
            logger.warning("Scheduler already started")
            return

        try:
            await self.engine.bootstrap()
        except BookmarksError as e:
            logger.error(f"Bootstrap failed, scheduler not started: {e}")
            raise

        self._launch()
        self._stop = asyncio.Event()
        self._timer = asyncio.create_task(self._tick_loop(self._stop))

    async def stop(self, wait_chains=False, cancel_chains=False):
        if self._timer is not None and self._stop is not None:
            self._stop.set()
            await asyncio.gather(self._timer, return_exceptions=True)
            self._timer, self._stop = None, None

        chains = list(self.chains)
        if cancel_chains:
            for task in chains:
                task.cancel()

        if (wait_chains or cancel_chains) and chains:
            await asyncio.gather(*chains, return_exceptions=True)

    async def run_forever(self):
        await self.start()
        assert self._timer is not None
        try:
            await self._timer
        except asyncio.CancelledError:
            logger.info("Scheduler cancelled, aborting running chains")
            await self.stop(cancel_chains=True)
            raise

        await self.stop(wait_chains=True)
