"""Tests for record.py -- merge preserved fields and emit content records."""

import os
from datetime import date
from pathlib import Path

import pytest
import yaml
from loguru import logger

from music_content_sync.frontmatter import split_front_matter
from music_content_sync.models import (
    AudioFormat,
    AudioMetadata,
    ExistingRecord,
    RecordStatus,
)
from music_content_sync.record import (
    PLACEHOLDER_DESCRIPTION,
    format_channels,
    merge_front_matter,
    render_body,
    resolve_description,
    sync_record,
)

TODAY = date(2030, 1, 2)


def _make_metadata(source: Path, **overrides) -> AudioMetadata:
    fields = {
        "source_path": source,
        "filename": source.name,
        "title": "Test Song",
        "artist": "Test Artist",
        "album": "Test Album",
        "date": "2024",
        "genre": ["Electronic", "Ambient"],
        "duration": 247.5,
        "file_size": 12345678,
        "bitrate": 1411200,
        "format": AudioFormat.FLAC,
        "mime_type": "audio/flac",
        "extension": ".flac",
        "sample_rate": 44100,
        "channels": 2,
        "bit_depth": 16,
        "comment": "A test song for unit testing",
    }
    fields.update(overrides)
    return AudioMetadata(**fields)


def _read_front_matter(path: Path) -> dict:
    block, _ = split_front_matter(path.read_text())
    return yaml.safe_load(block)


@pytest.fixture
def audio(tmp_path):
    f = tmp_path / "music" / "test-song.flac"
    f.parent.mkdir()
    f.write_bytes(b"fake flac")
    os.utime(f, (1_000_000, 1_000_000))
    return f


class TestFormatChannels:
    @pytest.mark.parametrize(
        ("channels", "label"), [(1, "Mono"), (2, "Stereo"), (6, "6 channels")]
    )
    def test_labels(self, channels, label):
        assert format_channels(channels) == label


class TestResolveDescription:
    def test_existing_wins(self, audio):
        meta = _make_metadata(audio, description="tag description")
        existing = ExistingRecord(description="My notes")
        assert resolve_description(meta, existing) == "My notes"

    def test_comment_before_description_tag(self, audio):
        meta = _make_metadata(audio, comment="tag comment", description="tag description")
        assert resolve_description(meta, None) == "tag comment"

    def test_description_tag(self, audio):
        meta = _make_metadata(audio, comment=None, description="tag description")
        assert resolve_description(meta, None) == "tag description"

    def test_blank_existing_falls_through(self, audio):
        meta = _make_metadata(audio, comment="tag comment")
        assert resolve_description(meta, ExistingRecord(description="  ")) == "tag comment"

    def test_placeholder(self, audio):
        meta = _make_metadata(audio, comment=None, description=None)
        assert resolve_description(meta, None) == PLACEHOLDER_DESCRIPTION


class TestMergeFrontMatter:
    def test_new_record(self, audio):
        fm = merge_front_matter(_make_metadata(audio), None, today=TODAY)
        assert fm["title"] == "Test Song"
        assert fm["artist"] == "Test Artist"
        assert fm["album"] == "Test Album"
        assert fm["date"] == date(2024, 1, 1)
        assert fm["createdDate"] == date(2024, 1, 1)
        assert "publishDate" not in fm
        assert fm["genre"] == ["Electronic", "Ambient"]
        assert fm["tags"] == ["music", "electronic", "ambient"]
        assert fm["duration"] == 248
        assert fm["fileSize"] == 12345678
        assert fm["filename"] == "test-song.flac"
        assert fm["layout"] == "music"
        assert fm["description"] == "A test song for unit testing"
        assert fm["technical"] == {
            "sampleRate": 44100,
            "bitDepth": 16,
            "channels": "Stereo",
            "format": "FLAC",
            "mimeType": "audio/flac",
            "bitrate": 1411200,
        }

    def test_existing_date_preferred_and_normalized(self, audio):
        existing = ExistingRecord(date="March 3, 2023")
        fm = merge_front_matter(_make_metadata(audio), existing, today=TODAY)
        assert fm["date"] == date(2023, 3, 3)

    def test_existing_without_date_uses_fresh(self, audio):
        fm = merge_front_matter(_make_metadata(audio), ExistingRecord(), today=TODAY)
        assert fm["date"] == date(2024, 1, 1)

    def test_preserves_publish_and_created_verbatim(self, audio):
        existing = ExistingRecord(
            date=date(2024, 8, 26),
            publish_date="2024-09-01T10:00:00Z",
            created_date=date(2024, 8, 20),
            description="Hand-written",
        )
        fm = merge_front_matter(_make_metadata(audio), existing, today=TODAY)
        assert fm["publishDate"] == "2024-09-01T10:00:00Z"
        assert fm["createdDate"] == date(2024, 8, 20)
        assert fm["description"] == "Hand-written"

    def test_existing_without_created_date_gets_none(self, audio):
        fm = merge_front_matter(_make_metadata(audio), ExistingRecord(), today=TODAY)
        assert "createdDate" not in fm

    def test_optional_credits(self, audio):
        meta = _make_metadata(audio, composer="Jane Doe", performer="The Band")
        fm = merge_front_matter(meta, None, today=TODAY)
        assert fm["composer"] == "Jane Doe"
        assert fm["performer"] == "The Band"

    def test_unparsable_date_falls_back_to_today(self, audio):
        meta = _make_metadata(audio, date="sometime")
        fm = merge_front_matter(meta, None, today=TODAY)
        assert fm["date"] == TODAY


class TestRenderBody:
    def test_shape(self, audio):
        meta = _make_metadata(audio, composer="Jane Doe")
        fm = merge_front_matter(meta, None, today=TODAY)
        body = render_body(meta, fm, media_url_prefix="/music-files/")
        assert body.startswith("# Test Song\n\n*by Test Artist*\n\nA test song for unit testing")
        assert '<source src="/music-files/test-song.flac" type="audio/flac">' in body
        assert "<strong>Duration:</strong> 4:07" in body
        assert "<strong>File Size:</strong> 11.8 MB" in body
        assert "<strong>Channels:</strong> Stereo" in body
        assert "Download FLAC (11.8 MB)" in body
        assert "**Album:** Test Album" in body
        assert "**Composer:** Jane Doe" in body
        assert "Performer" not in body

    def test_unknown_album_omitted(self, audio):
        meta = _make_metadata(audio, album="Unknown Album", date=str(TODAY.year))
        fm = merge_front_matter(meta, None, today=TODAY)
        assert "## Album Information" not in render_body(meta, fm, today=TODAY)

    def test_release_date_line(self, audio):
        meta = _make_metadata(audio, date="2024-08-26")
        fm = merge_front_matter(meta, None, today=TODAY)
        body = render_body(meta, fm, today=TODAY)
        assert "**Album:** Test Album\n\n**Release Date:** 2024-08-26" in body

    def test_release_date_without_album(self, audio):
        meta = _make_metadata(audio, album="Unknown Album", date="2019")
        fm = merge_front_matter(meta, None, today=TODAY)
        body = render_body(meta, fm, today=TODAY)
        assert "## Album Information\n\n**Release Date:** 2019-01-01" in body

    def test_current_year_release_date_omitted(self, audio):
        meta = _make_metadata(audio, date=str(TODAY.year))
        fm = merge_front_matter(meta, None, today=TODAY)
        assert "Release Date" not in render_body(meta, fm, today=TODAY)

    def test_lossy_bit_depth(self, audio):
        meta = _make_metadata(audio, bit_depth=None)
        fm = merge_front_matter(meta, None, today=TODAY)
        assert "<strong>Bit Depth:</strong> n/a" in render_body(meta, fm)


class TestSyncRecord:
    def test_none_metadata(self, tmp_path):
        assert sync_record(None, tmp_path / "out") is None
        assert not (tmp_path / "out").exists()

    def test_writes_slugged_file(self, audio, tmp_path):
        out = tmp_path / "content" / "music"
        meta = _make_metadata(audio, title="Song Title: With Special Characters! & Symbols")
        result = sync_record(meta, out, today=TODAY)
        assert result.status == RecordStatus.WRITTEN
        assert result.path == out / "song-title-with-special-characters-symbols.md"
        assert result.path.is_file()
        text = result.path.read_text()
        assert text.startswith("---\ntitle: ")
        assert "layout: music" in text
        assert "&id" not in text
        assert "# Song Title: With Special Characters! & Symbols" in text

    def test_skips_when_record_newer(self, audio, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        record = out / "test-song.md"
        record.write_text("---\ntitle: hand edited\n---\n")
        os.utime(record, (2_000_000, 2_000_000))

        result = sync_record(_make_metadata(audio), out)

        assert result.status == RecordStatus.SKIPPED
        assert result.path == record
        assert record.read_text() == "---\ntitle: hand edited\n---\n"

    def test_second_run_is_a_no_op(self, audio, tmp_path):
        out = tmp_path / "out"
        first = sync_record(_make_metadata(audio), out, today=TODAY)
        content = first.path.read_bytes()
        mtime = first.path.stat().st_mtime_ns

        second = sync_record(_make_metadata(audio), out, today=TODAY)

        assert second.status == RecordStatus.SKIPPED
        assert second.path.read_bytes() == content
        assert second.path.stat().st_mtime_ns == mtime

    def test_regeneration_preserves_manual_edits(self, audio, tmp_path):
        out = tmp_path / "out"
        first = sync_record(_make_metadata(audio), out, today=TODAY)

        fm = _read_front_matter(first.path)
        fm["description"] = "Recorded in one take."
        fm["publishDate"] = date(2024, 9, 1)
        block = yaml.safe_dump(fm, sort_keys=False)
        first.path.write_text(f"---\n{block}---\n\nold body\n")
        os.utime(first.path, (1_500_000, 1_500_000))
        os.utime(audio, (2_000_000, 2_000_000))

        retagged = _make_metadata(audio, duration=301.2, sample_rate=96000, bit_depth=24)
        result = sync_record(retagged, out, today=TODAY)

        assert result.status == RecordStatus.WRITTEN
        new_fm = _read_front_matter(result.path)
        assert new_fm["description"] == "Recorded in one take."
        assert new_fm["publishDate"] == date(2024, 9, 1)
        assert new_fm["createdDate"] == date(2024, 1, 1)
        assert new_fm["duration"] == 301
        assert new_fm["technical"]["sampleRate"] == 96000
        assert new_fm["technical"]["bitDepth"] == 24
        assert "Recorded in one take." in result.path.read_text()

    def test_force_rewrites_current_record(self, audio, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        record = out / "test-song.md"
        record.write_text("---\ntitle: stale\n---\n")
        os.utime(record, (2_000_000, 2_000_000))

        result = sync_record(_make_metadata(audio), out, force=True, today=TODAY)

        assert result.status == RecordStatus.WRITTEN
        assert _read_front_matter(record)["title"] == "Test Song"

    def test_malformed_existing_is_regenerated(self, audio, tmp_path):
        out = tmp_path / "out"
        out.mkdir()
        record = out / "test-song.md"
        record.write_text("---\ndescription: [broken\n---\n")
        os.utime(record, (500_000, 500_000))

        result = sync_record(_make_metadata(audio), out, today=TODAY)

        fm = _read_front_matter(result.path)
        assert fm["description"] == "A test song for unit testing"
        assert fm["createdDate"] == date(2024, 1, 1)

    def test_write_failure_propagates(self, audio, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        with pytest.raises(OSError):
            sync_record(_make_metadata(audio), blocker / "music")


@pytest.fixture
def warning_log():
    messages = []
    handler_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(handler_id)


class TestSlugCollision:
    def _track(self, directory: Path, name: str) -> Path:
        f = directory / name
        f.write_bytes(b"fake flac")
        os.utime(f, (1_000_000, 1_000_000))
        return f

    def test_second_track_with_same_title_warns(self, tmp_path, warning_log):
        src = tmp_path / "music"
        src.mkdir()
        out = tmp_path / "out"
        first = self._track(src, "take-one.flac")
        second = self._track(src, "take-two.flac")

        sync_record(_make_metadata(first, title="Same Title"), out, today=TODAY)
        result = sync_record(_make_metadata(second, title="Same Title"), out, today=TODAY)

        assert result.status == RecordStatus.SKIPPED
        assert _read_front_matter(result.path)["filename"] == "take-one.flac"
        assert len(warning_log) == 1
        assert "take-one.flac" in warning_log[0]
        assert "take-two.flac" in warning_log[0]

    def test_forced_overwrite_also_warns(self, tmp_path, warning_log):
        src = tmp_path / "music"
        src.mkdir()
        out = tmp_path / "out"
        first = self._track(src, "take-one.flac")
        second = self._track(src, "take-two.flac")

        sync_record(_make_metadata(first, title="Same Title"), out, today=TODAY)
        result = sync_record(
            _make_metadata(second, title="Same Title"), out, force=True, today=TODAY
        )

        assert result.status == RecordStatus.WRITTEN
        assert len(warning_log) == 1

    def test_same_file_rerun_is_quiet(self, audio, tmp_path, warning_log):
        out = tmp_path / "out"
        sync_record(_make_metadata(audio), out, today=TODAY)
        sync_record(_make_metadata(audio), out, today=TODAY)
        assert warning_log == []
