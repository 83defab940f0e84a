"""Unit tests for the artifact emitter."""

import csv
import io
import json
from pathlib import Path

from harvester.artifacts import ArtifactEmitter, filename_for_url, render_csv
from harvester.models import CSV_HEADERS, ExtractionRecord, Outcome


def _read_rows(path: Path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestFilenameForUrl:
    def test_last_segment(self) -> None:
        assert filename_for_url("https://www.linkedin.com/company/acme") == "acme.csv"

    def test_trailing_slash_ignored(self) -> None:
        assert filename_for_url("https://www.linkedin.com/company/acme/") == "acme.csv"

    def test_fallback_for_empty(self) -> None:
        assert filename_for_url("") == "linkedin_page.csv"


class TestRenderCsv:
    def test_header_and_quoting(self) -> None:
        text = render_csv([["https://x/a", "Acme", "Hello", "", "1", "2"]])
        assert text.splitlines()[0] == '"PageURL","PageName","Content","PostDate","Likes","Comments"'
        assert text.splitlines()[1] == '"https://x/a","Acme","Hello","","1","2"'

    def test_round_trip_with_awkward_content(self) -> None:
        awkward = 'He said "ship it", then left.\nSecond line, with "quotes" and, commas'
        text = render_csv([["https://x/a", 'Acme, "Inc"', awkward, "2024-01-01 00:00:00", "1,024", "7"]])

        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == CSV_HEADERS
        assert rows[1][1] == 'Acme, "Inc"'
        assert rows[1][2] == awkward
        assert rows[1][4] == "1,024"

    def test_embedded_quotes_are_doubled(self) -> None:
        text = render_csv([["u", "n", 'say "hi"', "", "", ""]])
        assert '"say ""hi"""' in text


class TestArtifactEmitter:
    async def test_success_writes_every_record(self, emitter: ArtifactEmitter) -> None:
        records = [
            ExtractionRecord("https://x/a", "Acme", "first", "2024-01-01 00:00:00", "3", "1"),
            ExtractionRecord("https://x/a", "Acme", "second", "Unknown", "0", "0"),
        ]
        path = await emitter.emit("https://x/a", Outcome.success(records))

        assert path.name == "a.csv"
        rows = _read_rows(path)
        assert rows[0] == CSV_HEADERS
        assert rows[1:] == [r.as_row() for r in records]

    async def test_empty_writes_no_post_row(self, emitter: ArtifactEmitter) -> None:
        path = await emitter.emit("https://x/a", Outcome.empty())
        assert _read_rows(path)[1] == ["https://x/a", "not found", "no post", "", "", ""]

    async def test_sentinel_writes_sentinel_record(self, emitter: ArtifactEmitter) -> None:
        record = ExtractionRecord("https://x/a", "not found", "no post")
        path = await emitter.emit("https://x/a", Outcome.sentinel(record))
        rows = _read_rows(path)
        assert len(rows) == 2
        assert rows[1] == ["https://x/a", "not found", "no post", "", "", ""]

    async def test_stall_and_error_write_skipped_row(self, emitter: ArtifactEmitter) -> None:
        stalled = await emitter.emit("https://x/s", Outcome.stalled("no heartbeat"))
        errored = await emitter.emit("https://x/e", Outcome.error("boom"))
        for path, url in ((stalled, "https://x/s"), (errored, "https://x/e")):
            assert _read_rows(path)[1:] == [[url, "skipped", "no post or error", "", "", ""]]

    async def test_write_failure_is_not_fatal(self, tmp_path: Path) -> None:
        blocker = tmp_path / "out"
        blocker.write_text("not a directory", encoding="utf-8")
        emitter = ArtifactEmitter(str(blocker), str(tmp_path / "snap.json"))

        assert await emitter.emit("https://x/a", Outcome.empty()) is None
        assert emitter.write_failures == 1

    async def test_snapshot_is_json_array(self, emitter: ArtifactEmitter) -> None:
        path = await emitter.write_snapshot(["https://x/b", "https://x/c"])
        assert json.loads(path.read_text(encoding="utf-8")) == ["https://x/b", "https://x/c"]

        await emitter.write_snapshot([])
        assert json.loads(path.read_text(encoding="utf-8")) == []
        assert not path.with_name(path.name + ".tmp").exists()
