import pytest

from pesde.reporters import DownloadProgressReporter, DownloadsReporter, track_download


class Recorder(DownloadProgressReporter):
    def __init__(self):
        self.events = []

    def report_progress(self, total, length):
        self.events.append(("progress", total, length))

    def report_done(self):
        self.events.append(("done",))


class RecordingDownloads(DownloadsReporter):
    def __init__(self):
        self.names = []

    def report_download(self, name):
        self.names.append(name)
        return Recorder()


def _broken_chunks():
    yield b"a"
    raise OSError("connection reset")


def test_track_download_reports_progress():
    chunks = [b"ab", b"cde"]
    recorder = Recorder()
    out = list(track_download(chunks, 5, recorder))
    assert out == chunks
    assert recorder.events == [
        ("progress", 5, 0),
        ("progress", 5, 2),
        ("progress", 5, 5),
        ("done",),
    ]


def test_unknown_total_reported_as_zero():
    recorder = Recorder()
    list(track_download([b"xyz"], None, recorder))
    assert recorder.events[0] == ("progress", 0, 0)
    assert recorder.events[-1] == ("done",)


def test_done_only_after_exhaustion():
    recorder = Recorder()
    stream = track_download([b"a", b"b"], 2, recorder)
    assert next(stream) == b"a"
    assert ("done",) not in recorder.events
    assert list(stream) == [b"b"]
    assert recorder.events[-1] == ("done",)


def test_default_reporter_passes_chunks_through():
    reporter = DownloadsReporter().report_download("pkg")
    assert list(track_download([b"a", b"bc"], 3, reporter)) == [b"a", b"bc"]


def test_custom_downloads_reporter():
    downloads = RecordingDownloads()
    progress = downloads.report_download("acme/foo")
    data = b"".join(track_download(iter([b"12", b"34"]), 4, progress))
    assert data == b"1234"
    assert downloads.names == ["acme/foo"]
    assert progress.events[-2] == ("progress", 4, 4)


def test_error_in_source_propagates_without_done():
    recorder = Recorder()
    with pytest.raises(OSError, match="connection reset"):
        list(track_download(_broken_chunks(), 10, recorder))
    assert ("done",) not in recorder.events
    assert recorder.events[-1] == ("progress", 10, 1)