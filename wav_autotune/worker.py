from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from tqdm import tqdm

from .pipeline import AutotunePipeline, RunSummary
from .progress import LatestProgress

LOG = logging.getLogger(__name__)


class BackgroundRun:
    """Runs one file through a pipeline on a worker thread.

    A front end polls `progress` and `done()`; it never touches pipeline internals.
    """

    def __init__(
        self,
        pipeline: AutotunePipeline,
        input_path: str | Path,
        output_path: str | Path,
        executor: Optional[concurrent.futures.Executor] = None,
    ):
        self.pipeline = pipeline
        self.input_path = Path(input_path)
        self.output_path = Path(output_path)
        self._progress = LatestProgress()
        self._cancel = threading.Event()
        self._own_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="autotune")
        self._future: concurrent.futures.Future | None = None

    def start(self) -> "BackgroundRun":
        if self._future is not None:
            raise RuntimeError("BackgroundRun already started")
        self._future = self._executor.submit(self._run)
        if self._own_executor:
            self._executor.shutdown(wait=False)
        return self

    def _run(self) -> RunSummary:
        try:
            return self.pipeline.process_file(
                self.input_path,
                self.output_path,
                progress=self._progress,
                cancel=self._cancel,
            )
        finally:
            self._progress.mark_finished()

    @property
    def progress(self) -> float:
        return self._progress.value

    def cancel(self) -> None:
        self._cancel.set()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def result(self, timeout: float | None = None) -> RunSummary:
        """Summary of the run; re-raises the fatal error if the run failed."""
        if self._future is None:
            raise RuntimeError("BackgroundRun not started")
        return self._future.result(timeout=timeout)


@dataclass
class BatchItem:
    input_path: Path
    output_path: Path
    summary: RunSummary | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.summary is not None and self.summary.completed


def process_batch(
    pipeline: AutotunePipeline,
    jobs: Sequence[tuple[str | Path, str | Path]],
    workers: int = 1,
    show_progress: bool = True,
) -> list[BatchItem]:
    """Process many files; each file is its own run. Failures are logged, not raised."""
    items = [BatchItem(Path(src), Path(dst)) for src, dst in jobs]
    pbar = tqdm(total=len(items), desc="Autotune batch", unit="file", disable=not show_progress)

    def _job(item: BatchItem) -> BatchItem:
        item.summary = pipeline.process_file(item.input_path, item.output_path)
        return item

    workers = max(1, int(workers))
    if workers > 1:
        LOG.info("Batch concurrency enabled: workers=%d", workers)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futs = {ex.submit(_job, item): item for item in items}
        for fut in concurrent.futures.as_completed(futs):
            item = futs[fut]
            try:
                fut.result()
            except Exception as e:
                item.error = e
                LOG.exception("FAILED %s: %s", item.input_path, e)
            pbar.update(1)
    pbar.close()
    return items
