"""Progress notifications for long-running operations.

Callers hand in reporter objects to follow what an operation is doing. The
base classes here only record the latest notification they received, so
passing one of them opts out of progress output.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class DownloadProgressReporter:
    """Receives updates about one transfer and remembers the latest state."""

    started: bool = False
    total: int = 0
    received: int = 0
    done: bool = False

    def report_start(self) -> None:
        """Called when the transfer begins."""
        self.started = True

    def report_progress(self, total: int, length: int) -> None:
        """Called with the bytes received so far out of the expected total."""
        self.total = total
        self.received = length

    def report_done(self) -> None:
        """Called once the transfer has finished."""
        self.done = True


class DownloadsReporter:
    """Hands out a progress reporter for every transfer that begins."""

    def report_download(self, name: str) -> DownloadProgressReporter:
        """Return the reporter that follows the transfer called `name`."""
        return DownloadProgressReporter()


class PatchProgressReporter:
    """Receives updates about one patch and remembers whether it finished."""

    done: bool = False

    def report_done(self) -> None:
        """Called once the patch is in place."""
        self.done = True


class PatchesReporter:
    """Hands out a progress reporter for every patch being applied."""

    def report_patch(self, name: str) -> PatchProgressReporter:
        """Return the reporter that follows the patch for `name`."""
        return PatchProgressReporter()


def track_download(
    chunks: Iterable[bytes],
    total: int | None,
    reporter: DownloadProgressReporter,
) -> Iterator[bytes]:
    """Yield the chunks unchanged, telling `reporter` how many bytes have passed.

    A missing total is reported as 0. Completion is reported only after the
    last chunk has been yielded.
    """
    expected = total or 0
    reporter.report_progress(expected, 0)
    received = 0
    for chunk in chunks:
        received += len(chunk)
        reporter.report_progress(expected, received)
        yield chunk
    reporter.report_done()