import hashlib
import re

from clipkeeper.config import DATA_DIR, IMAGE_DIR, PREVIEW_LENGTH

_LINE_BREAKS = re.compile(r"\r\n|[\r\n\t]")
_SPACE_RUNS = re.compile(r" {2,}")


def compute_hash(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def generate_preview(content: str, max_len: int = PREVIEW_LENGTH) -> str:
    if not content:
        return ""
    single_line = _LINE_BREAKS.sub(" ", content)
    single_line = _SPACE_RUNS.sub(" ", single_line).strip()
    if len(single_line) <= max_len:
        return single_line
    return single_line[:max_len].rstrip() + "..."


def ensure_dirs() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    IMAGE_DIR.mkdir(parents=True, exist_ok=True)
