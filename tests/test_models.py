from datetime import datetime, timedelta, timezone

import pytest

from clipkeeper.models import ClipboardEntry, ClipboardPayload, ContentType


class TestClipboardEntry:
    def test_empty_content_rejected(self, make_entry):
        with pytest.raises(ValueError):
            make_entry(content="")

    def test_image_requires_path(self):
        with pytest.raises(ValueError):
            ClipboardEntry(
                id=None,
                content="something",
                content_type=ContentType.IMAGE,
                copied_at=datetime.now(timezone.utc),
            )

    def test_text_rejects_path(self):
        with pytest.raises(ValueError):
            ClipboardEntry(
                id=None,
                content="text",
                content_type=ContentType.TEXT,
                copied_at=datetime.now(timezone.utc),
                image_path="/tmp/x.png",
            )

    def test_color_hex_length(self, make_entry):
        with pytest.raises(ValueError):
            make_entry(content="#FFFFFFFFFF", content_type=ContentType.COLOR, color_hex="#FFFFFFFFFF")

    def test_display_text_prefers_preview(self, make_entry):
        entry = make_entry(content="hello\nworld")
        entry.preview = "hello world"
        assert entry.display_text == "hello world"

    def test_display_text_for_color(self, make_entry):
        entry = make_entry(content="#ff5733", content_type=ContentType.COLOR, color_hex="#FF5733")
        assert entry.display_text == "#FF5733"

    @pytest.mark.parametrize(
        "content_type,label",
        [
            (ContentType.TEXT, ""),
            (ContentType.CODE, "CODE"),
            (ContentType.URL, "URL"),
            (ContentType.EMAIL, "EMAIL"),
            (ContentType.IMAGE, "IMAGE"),
        ],
    )
    def test_type_label(self, make_entry, content_type, label):
        assert make_entry(content_type=content_type).type_label == label


class TestTimeAgo:
    @pytest.fixture
    def now(self):
        return datetime(2024, 3, 20, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=5), "5m ago"),
            (timedelta(hours=3), "3h ago"),
            (timedelta(days=2), "2d ago"),
        ],
    )
    def test_relative(self, make_entry, now, delta, expected):
        entry = make_entry()
        entry.copied_at = now - delta
        assert entry.time_ago(now) == expected

    def test_older_than_a_week_shows_date(self, make_entry, now):
        entry = make_entry()
        entry.copied_at = now - timedelta(days=30)
        local = entry.copied_at.astimezone()
        assert entry.time_ago(now) == f"{local.strftime('%b')} {local.day}"


class TestClipboardPayload:
    def test_text(self):
        payload = ClipboardPayload(text="hi")
        assert payload.has_text and not payload.has_image

    def test_image(self, make_image):
        payload = ClipboardPayload(image=make_image())
        assert payload.has_image and not payload.has_text

    def test_needs_exactly_one(self, make_image):
        with pytest.raises(ValueError):
            ClipboardPayload()
        with pytest.raises(ValueError):
            ClipboardPayload(text="hi", image=make_image())
