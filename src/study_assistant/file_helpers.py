# small helpers for tracked files: ids, payload encoding, mime detection
import base64
import mimetypes
import uuid
from pathlib import Path

from .models import RawFile


def generate_id() -> str:
    """Generate a short id for tracked files"""
    return uuid.uuid4().hex[:9]


# inline base64 is how documents are sent to the ai service
def encode_payload(data: bytes) -> str:
    """Encode raw file bytes as plain base64 text (no data-url prefix)"""
    return base64.b64encode(data).decode("ascii")


def guess_mime_type(filename: str) -> str:
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"


def raw_file_from_path(path: Path) -> RawFile:
    """Read a file from disk into a RawFile"""
    data = path.read_bytes()
    return RawFile(name=path.name, content_type=guess_mime_type(path.name), data=data, size=len(data))
