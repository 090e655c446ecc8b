"""
Staggered, failure-isolated execution of fetch-or-write batches.

A batch is a list of candidates (source, destination, label). Scheduling
drops candidates whose destination already exists (unless regenerating) and
gives item n a start delay of n * step. Running starts every item at once on
the event loop; each item waits out its delay, loads its bytes, and writes
them. One item's failure is recorded and never affects another item.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, List, Tuple

import aiofiles
import aiofiles.os
from tqdm import tqdm

from logger import ProgressTracker
from models import BatchReport, ItemStatus, WorkItem

Loader = Callable[[Any], Awaitable[bytes]]


class AcquisitionPipeline:
    """Runs one batch of work items concurrently with staggered starts."""

    def __init__(
        self,
        name: str,
        delay_step_ms: float = 0,
        regenerate: bool = False,
        show_progress: bool = True,
        logger: logging.Logger = None
    ):
        """
        Initialize pipeline.

        Args:
            name: Batch name used in logs and the report
            delay_step_ms: Start offset between consecutive items, in milliseconds
            regenerate: Rewrite destinations that already exist
            show_progress: Show a progress bar when stdout is a terminal
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.name = name
        self.delay_step = delay_step_ms / 1000.0
        self.regenerate = regenerate
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger('wordpress_markdown_exporter.orchestrator.pipeline')
        self.report = BatchReport(name=name)

    def schedule(self, candidates: Iterable[Tuple[Any, Path, str]]) -> List[WorkItem]:
        """
        Turn candidates into work items.

        Args:
            candidates: (source, destination_path, label) tuples

        Returns:
            Work items to execute, each with its start delay
        """
        items: List[WorkItem] = []
        seen = set()

        for source, destination, label in candidates:
            destination = Path(destination)

            if destination in seen:
                self.logger.warning(f"{self.name}: duplicate destination {destination} for '{label}', skipped")
                continue
            seen.add(destination)

            if destination.exists():
                if self.regenerate:
                    self.report.regenerated += 1
                else:
                    self.report.skipped += 1
                    continue

            items.append(WorkItem(
                source=source,
                destination_path=destination,
                label=label,
                delay=len(items) * self.delay_step,
            ))

        if not items and not self.report.skipped:
            self.logger.info(f"No {self.name} to save")
        elif self.regenerate:
            self.logger.info(
                f"Saving {len(items)} {self.name} ({self.report.regenerated} will be rewritten)"
            )
        else:
            self.logger.info(f"Saving {len(items)} {self.name} ({self.report.skipped} already exist)")

        return items

    async def run(self, items: List[WorkItem], loader: Loader) -> BatchReport:
        """
        Execute every item concurrently and wait for all of them to settle.

        Args:
            items: Scheduled work items
            loader: Coroutine function producing the bytes for an item's source

        Returns:
            The batch report
        """
        if not items:
            return self.report

        progress = None
        if self._should_show_progress():
            progress = tqdm(total=len(items), desc=self.name, unit='item', leave=False)

        with ProgressTracker(total_items=len(items), item_type=self.name) as tracker:
            async def execute(item: WorkItem) -> None:
                status, error = await self._execute_item(item, loader)
                self.report.record(item.label, status, error)
                tracker.increment(success=status == ItemStatus.WRITTEN)
                if progress is not None:
                    progress.update(1)

            try:
                await asyncio.gather(*(execute(item) for item in items))
            finally:
                if progress is not None:
                    progress.close()

        if self.report.failed == 0:
            self.logger.info(f"Done, got all {self.report.succeeded} {self.name}")
        else:
            self.logger.warning(f"Done, but with {self.report.failed} {self.name} failed")
        return self.report

    async def execute(self, candidates: Iterable[Tuple[Any, Path, str]], loader: Loader) -> BatchReport:
        """Schedule and run a batch."""
        return await self.run(self.schedule(candidates), loader)

    async def _execute_item(self, item: WorkItem, loader: Loader) -> Tuple[ItemStatus, str]:
        if item.delay > 0:
            await asyncio.sleep(item.delay)

        try:
            data = await loader(item.source)
            await write_file(item.destination_path, data)
        except Exception as e:
            self.logger.error(f"[FAILED] {item.label} ({e})")
            return ItemStatus.FAILED, str(e) or type(e).__name__

        self.logger.info(f"[OK] {item.label}")
        return ItemStatus.WRITTEN, ''

    def _should_show_progress(self) -> bool:
        """Check if progress bars should be displayed."""
        return self.show_progress and sys.stdout.isatty()


async def write_file(destination: Path, data: bytes) -> None:
    """Create the parent directory chain and write ``data``."""
    await aiofiles.os.makedirs(destination.parent, exist_ok=True)
    async with aiofiles.open(destination, 'wb') as f:
        await f.write(data)


__all__ = ['AcquisitionPipeline', 'write_file']
