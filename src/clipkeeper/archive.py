import logging
from datetime import datetime
from pathlib import Path

from PIL import Image

from clipkeeper.config import IMAGE_DIR, THUMBNAIL_MAX_SIZE
from clipkeeper.errors import ImageArchiveError

logger = logging.getLogger(__name__)

PNG_MODES = {"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"}


class ImageArchive:
    """Stores copied images as PNG files, one file per history entry."""

    def __init__(self, image_dir: str | Path | None = None):
        self._image_dir = Path(image_dir) if image_dir else IMAGE_DIR

    @property
    def image_dir(self) -> Path:
        return self._image_dir

    def next_path(self) -> Path:
        """Pick the file name the next saved image will get."""
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        path = self._image_dir / f"clip_{stamp}.png"
        suffix = 1
        while path.exists():
            path = self._image_dir / f"clip_{stamp}_{suffix}.png"
            suffix += 1
        return path

    def save(self, image: Image.Image, path: str | Path | None = None) -> str:
        target = Path(path) if path else self.next_path()
        if image.mode not in PNG_MODES:
            image = image.convert("RGBA")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            image.save(target, format="PNG")
        except (OSError, ValueError) as exc:
            raise ImageArchiveError(f"Could not save image: {exc}", path=str(target)) from exc
        return str(target)

    def load(self, path: str | Path | None) -> Image.Image | None:
        if not path:
            return None
        try:
            with Image.open(path) as img:
                img.load()
                return img.copy()
        except OSError:
            logger.warning("Could not load archived image %s", path)
            return None

    @staticmethod
    def create_thumbnail(image: Image.Image, max_size: int = THUMBNAIL_MAX_SIZE) -> Image.Image:
        width, height = image.size
        scale = min(1.0, max_size / width, max_size / height)
        if scale >= 1.0:
            return image.copy()
        size = (max(1, round(width * scale)), max(1, round(height * scale)))
        return image.resize(size, Image.Resampling.LANCZOS)

    @staticmethod
    def delete(path: str | Path | None) -> None:
        if not path:
            return
        try:
            Path(path).unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not delete archived image %s", path, exc_info=True)

    @staticmethod
    def dimensions(image: Image.Image) -> str:
        return f"{image.width}x{image.height}"
