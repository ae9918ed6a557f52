from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from PIL import Image


class ContentType(str, Enum):
    TEXT = "Text"
    CODE = "Code"
    COLOR = "Color"
    IMAGE = "Image"
    URL = "Url"
    EMAIL = "Email"


TYPE_LABELS = {
    ContentType.CODE: "CODE",
    ContentType.COLOR: "COLOR",
    ContentType.IMAGE: "IMAGE",
    ContentType.URL: "URL",
    ContentType.EMAIL: "EMAIL",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ClipboardEntry:
    id: int | None
    content: str
    content_type: ContentType
    copied_at: datetime
    preview: str | None = None
    color_hex: str | None = None
    image_path: str | None = None
    is_pinned: bool = False
    content_hash: str | None = None

    def __post_init__(self):
        if not self.content:
            raise ValueError("content must not be empty")
        if (self.content_type == ContentType.IMAGE) != bool(self.image_path):
            raise ValueError("image_path must be set if and only if content_type is Image")
        if self.color_hex is not None and len(self.color_hex) > 9:
            raise ValueError(f"color_hex too long: {self.color_hex!r}")
        if self.content_hash is not None and len(self.content_hash) > 64:
            raise ValueError("content_hash longer than 64 characters")

    @property
    def display_text(self) -> str:
        if self.content_type == ContentType.COLOR:
            return self.color_hex or self.content
        return self.preview or self.content

    @property
    def type_label(self) -> str:
        return TYPE_LABELS.get(self.content_type, "")

    def time_ago(self, now: datetime | None = None) -> str:
        """Short relative age used by list views ("5m ago", "Mar 4")."""
        now = now or utc_now()
        seconds = (now - self.copied_at).total_seconds()
        if seconds < 60:
            return "Just now"
        if seconds < 3600:
            return f"{int(seconds // 60)}m ago"
        if seconds < 86400:
            return f"{int(seconds // 3600)}h ago"
        if seconds < 7 * 86400:
            return f"{int(seconds // 86400)}d ago"
        local = self.copied_at.astimezone()
        return f"{local.strftime('%b')} {local.day}"


@dataclass
class AppSettings:
    history_limit: int = 50
    hotkey_modifiers: int = 5  # Ctrl + Shift
    hotkey_key: int = 0x56  # V
    run_on_startup: bool = False
    theme: str = "Dark"
    widget_position_x: float | None = None
    widget_position_y: float | None = None
    is_panel_expanded: bool = False


@dataclass
class ClipboardPayload:
    """One clipboard change: either text or an image, never both."""

    text: str | None = None
    image: Image.Image | None = None

    def __post_init__(self):
        if (self.text is None) == (self.image is None):
            raise ValueError("ClipboardPayload needs exactly one of text or image")

    @property
    def has_text(self) -> bool:
        return self.text is not None

    @property
    def has_image(self) -> bool:
        return self.image is not None
