import pytest
from PIL import Image

from clipkeeper.archive import ImageArchive
from clipkeeper.errors import ClipboardReadError
from clipkeeper.models import ClipboardEntry, ClipboardPayload, ContentType, utc_now
from clipkeeper.pipeline import ClipboardPipeline
from clipkeeper.settings import SettingsService
from clipkeeper.storage import StorageManager
from clipkeeper.utils import compute_hash
from clipkeeper.watcher import ClipboardWatcher


class FakeWatcher(ClipboardWatcher):
    """In-memory clipboard; copy_text/copy_image stand in for the OS notification."""

    def __init__(self):
        super().__init__()
        self.clipboard: ClipboardPayload | None = None
        self.locked = False
        self.writes: list[ClipboardPayload] = []

    def read_payload(self):
        if self.locked:
            raise ClipboardReadError("clipboard is open in another process")
        return self.clipboard

    def write_text(self, text):
        self.clipboard = ClipboardPayload(text=text)
        self.writes.append(self.clipboard)
        self.notify()

    def write_image(self, image):
        self.clipboard = ClipboardPayload(image=image)
        self.writes.append(self.clipboard)
        self.notify()

    def copy_text(self, text):
        self.clipboard = ClipboardPayload(text=text)
        return self.notify()

    def copy_image(self, image):
        self.clipboard = ClipboardPayload(image=image)
        return self.notify()


@pytest.fixture
def archive(tmp_path):
    return ImageArchive(tmp_path / "images")


@pytest.fixture
def storage(archive):
    mgr = StorageManager(db_path=":memory:", archive=archive)
    yield mgr
    mgr.close()


@pytest.fixture
def settings(storage):
    return SettingsService(storage)


@pytest.fixture
def watcher():
    return FakeWatcher()


@pytest.fixture
def pipeline(storage, watcher, settings):
    pipe = ClipboardPipeline(storage, watcher, settings, settle_delay=0)
    pipe.start()
    yield pipe
    pipe.stop()


@pytest.fixture
def make_image():
    def _make_image(width: int = 40, height: int = 20, color=(255, 0, 0)) -> Image.Image:
        return Image.new("RGB", (width, height), color)

    return _make_image


@pytest.fixture
def make_entry():
    """Factory fixture to create ClipboardEntry instances for testing."""

    def _make_entry(
        content: str = "hello world",
        content_type: ContentType = ContentType.TEXT,
        content_hash: str | None = None,
        pinned: bool = False,
        image_path: str | None = None,
        color_hex: str | None = None,
    ) -> ClipboardEntry:
        if content_type == ContentType.IMAGE:
            image_path = image_path or "/tmp/clip_test.png"
            content = image_path
        return ClipboardEntry(
            id=None,
            content=content,
            content_type=content_type,
            copied_at=utc_now(),
            preview=content[:100],
            color_hex=color_hex,
            image_path=image_path if content_type == ContentType.IMAGE else None,
            is_pinned=pinned,
            content_hash=content_hash or compute_hash(content),
        )

    return _make_entry
