"""Standalone transcription worker.

Drains the transcription_jobs table one job at a time. Run it when the API
is started with RUN_JOBS_INLINE=false:

    python -m podsearch.worker
"""
import asyncio
import signal
from typing import Optional

from loguru import logger

from podsearch.core.container import Container


class Worker:
    def __init__(self, container: Container, poll_seconds: Optional[float] = None):
        self.container = container
        self.poll_seconds = (
            poll_seconds if poll_seconds is not None else container.config().WORKER_POLL_SECONDS
        )
        self.shutdown_requested = False

    def request_shutdown(self, *_args) -> None:
        logger.info("[worker] shutdown requested, finishing current job")
        self.shutdown_requested = True

    async def run_once(self) -> bool:
        """Run at most one queued job. True when a job was processed."""
        result = await self.container.job_service().run_next()
        if result is None:
            return False
        if result.success:
            logger.info(f"[worker] job done external_id={result.external_id} segments={result.segment_count}")
        else:
            logger.warning(f"[worker] job failed external_id={result.external_id} error={result.error}")
        return True

    async def run_forever(self) -> None:
        logger.info(f"[worker] started poll={self.poll_seconds}s")
        abandoned = await self.container.job_service().recover_stale_jobs()
        if abandoned:
            logger.warning(f"[worker] failed {abandoned} abandoned job(s)")
        while not self.shutdown_requested:
            try:
                processed = await self.run_once()
            except Exception as e:
                logger.error(f"[worker] loop error: {e}")
                processed = False
            if not processed:
                await asyncio.sleep(self.poll_seconds)
        await self.container.db().dispose()
        logger.info("[worker] stopped")


async def main() -> None:
    worker = Worker(Container())
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.request_shutdown)
    await worker.run_forever()


if __name__ == "__main__":
    asyncio.run(main())
