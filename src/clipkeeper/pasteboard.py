import io
import logging

from AppKit import NSPasteboard, NSPasteboardTypePNG, NSPasteboardTypeString, NSPasteboardTypeTIFF
from Foundation import NSData
from PIL import Image

from clipkeeper.config import POLL_INTERVAL
from clipkeeper.errors import ClipboardReadError
from clipkeeper.models import ClipboardPayload
from clipkeeper.watcher import PollingWatcher

logger = logging.getLogger(__name__)


class PasteboardWatcher(PollingWatcher):
    """Watches the macOS general pasteboard via its change count."""

    def __init__(self, interval: float = POLL_INTERVAL):
        super().__init__(interval)
        self._pasteboard = NSPasteboard.generalPasteboard()
        self._last_change_count = self._pasteboard.changeCount()

    def has_changed(self) -> bool:
        current_count = self._pasteboard.changeCount()
        if current_count == self._last_change_count:
            return False
        self._last_change_count = current_count
        return True

    def sync_change_count(self) -> None:
        self._last_change_count = self._pasteboard.changeCount()

    def read_payload(self) -> ClipboardPayload | None:
        types = self._pasteboard.types()
        if types is None:
            return None

        if NSPasteboardTypeString in types:
            text = self._pasteboard.stringForType_(NSPasteboardTypeString)
            if text:
                return ClipboardPayload(text=str(text))

        for img_type in (NSPasteboardTypePNG, NSPasteboardTypeTIFF):
            if img_type in types:
                image = self._read_image(img_type)
                if image is not None:
                    return ClipboardPayload(image=image)

        return None

    def _read_image(self, img_type) -> Image.Image | None:
        data = self._pasteboard.dataForType_(img_type)
        if data is None:
            return None
        try:
            with Image.open(io.BytesIO(bytes(data))) as img:
                img.load()
                return img.copy()
        except OSError as exc:
            raise ClipboardReadError(f"Unreadable {img_type} data on pasteboard") from exc

    def write_text(self, text: str) -> None:
        self._pasteboard.clearContents()
        self._pasteboard.setString_forType_(text, NSPasteboardTypeString)
        self.sync_change_count()

    def write_image(self, image: Image.Image) -> None:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        png_bytes = buffer.getvalue()
        ns_data = NSData.dataWithBytes_length_(png_bytes, len(png_bytes))
        self._pasteboard.clearContents()
        self._pasteboard.setData_forType_(ns_data, NSPasteboardTypePNG)
        self.sync_change_count()
