"""Command-line clipboard backends for Wayland and X11."""

import hashlib
import io
import logging
import subprocess
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..exceptions import (
    ClipboardError,
    ClipboardNotAvailableError,
    ClipboardReadError,
    ImageDecodeError,
)
from ..persistence.models import ContentType

logger = logging.getLogger(__name__)

PNG_MIME = "image/png"
TEXT_MIME = "text/plain;charset=utf-8"

# Preferred text targets, in order
TEXT_TARGETS = (
    "text/plain;charset=utf-8",
    "text/plain;charset=utf8",
    "UTF8_STRING",
    "text/plain",
    "STRING",
    "TEXT",
)


def to_png(data: bytes, mime: str = PNG_MIME) -> bytes:
    """
    Normalize raster image bytes to PNG.

    Args:
        data: Encoded image bytes
        mime: MIME type the bytes were offered as

    Returns:
        PNG-encoded bytes (unchanged if already PNG)

    Raises:
        ImageDecodeError: If the bytes cannot be decoded as an image
    """
    if mime.lower() == PNG_MIME and data.startswith(b"\x89PNG\r\n\x1a\n"):
        return data
    try:
        with Image.open(io.BytesIO(data)) as image:
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode {mime} clipboard image: {e}") from e


def select_target(types: List[str]) -> Tuple[Optional[ContentType], Optional[str]]:
    """
    Pick the target to read from the offered types.

    Images win over text; PNG wins over other image formats.

    Returns:
        (content type, target) or (None, None) if nothing supported is offered
    """
    lowered = {t.lower(): t for t in types}
    if PNG_MIME in lowered:
        return ContentType.IMAGE, lowered[PNG_MIME]
    for target in types:
        if target.lower().startswith("image/"):
            return ContentType.IMAGE, target
    for candidate in TEXT_TARGETS:
        if candidate.lower() in lowered:
            return ContentType.TEXT, lowered[candidate.lower()]
    for target in types:
        if target.lower().startswith("text/plain"):
            return ContentType.TEXT, target
    return None, None


@dataclass(frozen=True)
class ClipboardSnapshot:
    """Raw clipboard state captured by one probe."""
    types: Tuple[str, ...]
    content_type: Optional[ContentType]
    target: Optional[str]
    data: bytes

    def fingerprint(self) -> str:
        digest = hashlib.sha256()
        digest.update("\n".join(self.types).encode("utf-8"))
        digest.update(b"\0")
        digest.update((self.target or "").encode("utf-8"))
        digest.update(b"\0")
        digest.update(self.data)
        return digest.hexdigest()


class ClipboardBackend(ABC):
    """
    Clipboard access with a derived change counter.

    Linux clipboards expose no change counter, so change_count() probes the
    offered types and the payload of the preferred target and increments a
    monotonic counter whenever that fingerprint changes. The probed snapshot
    is cached; the read_* methods answer from it.
    """

    name = "base"

    def __init__(self, timeout_seconds: float = 2.0):
        self.timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._change_count = 0
        self._fingerprint: Optional[str] = None
        self._snapshot: Optional[ClipboardSnapshot] = None

    @abstractmethod
    def _list_types(self) -> List[str]:
        """Targets currently offered by the clipboard owner."""

    @abstractmethod
    def _read(self, target: str) -> bytes:
        """Raw bytes of one target."""

    @abstractmethod
    def _write(self, data: bytes, target: str) -> None:
        """Take clipboard ownership offering data as target."""

    def _probe(self) -> ClipboardSnapshot:
        types = tuple(self._list_types())
        content_type, target = select_target(list(types))
        data = self._read(target) if target else b""
        return ClipboardSnapshot(types, content_type, target, data)

    def change_count(self) -> int:
        """
        Probe the clipboard and return the change counter.

        Raises:
            ClipboardError: If the clipboard cannot be probed
        """
        snapshot = self._probe()
        fingerprint = snapshot.fingerprint()
        with self._lock:
            self._snapshot = snapshot
            if fingerprint != self._fingerprint:
                self._fingerprint = fingerprint
                self._change_count += 1
            return self._change_count

    def _current(self) -> ClipboardSnapshot:
        with self._lock:
            snapshot = self._snapshot
        return snapshot if snapshot is not None else self._probe()

    def available_types(self) -> List[str]:
        return list(self._current().types)

    def read_text(self) -> Optional[str]:
        """Clipboard text, or None if no text target is offered."""
        snapshot = self._current()
        if snapshot.content_type is not ContentType.TEXT:
            return None
        return snapshot.data.decode("utf-8", errors="replace")

    def read_image(self) -> Optional[bytes]:
        """
        Clipboard image as PNG bytes, or None if no image target is offered.

        Raises:
            ImageDecodeError: If the offered image cannot be decoded
        """
        snapshot = self._current()
        if snapshot.content_type is not ContentType.IMAGE:
            return None
        return to_png(snapshot.data, snapshot.target)

    def write_text(self, text: str) -> None:
        self._write(text.encode("utf-8"), TEXT_MIME)
        self._invalidate()
        logger.debug(f"Wrote {len(text)} characters to {self.name} clipboard")

    def write_image(self, png_data: bytes) -> None:
        self._write(png_data, PNG_MIME)
        self._invalidate()
        logger.debug(f"Wrote {len(png_data)} byte image to {self.name} clipboard")

    def _invalidate(self) -> None:
        # Our own write must register as a change on the next probe
        with self._lock:
            self._fingerprint = None
            self._snapshot = None

    def _run(self, command: List[str]) -> Optional[bytes]:
        """
        Run a clipboard read command.

        Returns:
            stdout bytes, or None if the command reported an empty clipboard

        Raises:
            ClipboardNotAvailableError: If the tool is not installed
            ClipboardReadError: On timeout
        """
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError as e:
            raise ClipboardNotAvailableError(f"{command[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise ClipboardReadError(f"{command[0]} timeout after {self.timeout_seconds}s") from e
        if result.returncode != 0:
            logger.debug(
                f"{command[0]} exited with {result.returncode}: "
                f"{result.stderr.decode('utf-8', errors='ignore').strip()}"
            )
            return None
        return result.stdout

    def _run_write(self, command: List[str], data: bytes) -> None:
        """
        Run a clipboard write command.

        The tools fork a background owner process, so their output is not
        captured; capturing would wait on the inherited pipes.
        """
        try:
            subprocess.run(
                command,
                input=data,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout_seconds,
                check=True,
            )
        except FileNotFoundError as e:
            raise ClipboardNotAvailableError(f"{command[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise ClipboardError(f"{command[0]} timeout after {self.timeout_seconds}s") from e
        except subprocess.CalledProcessError as e:
            raise ClipboardError(f"{command[0]} failed with exit code {e.returncode}") from e


class WaylandClipboard(ClipboardBackend):
    """Clipboard access through wl-clipboard (wl-paste / wl-copy)."""

    name = "wayland"

    def _list_types(self) -> List[str]:
        output = self._run(["wl-paste", "--list-types"])
        if not output:
            return []
        return [line.strip() for line in output.decode("utf-8", errors="ignore").splitlines() if line.strip()]

    def _read(self, target: str) -> bytes:
        output = self._run(["wl-paste", "--no-newline", "--type", target])
        return output or b""

    def _write(self, data: bytes, target: str) -> None:
        self._run_write(["wl-copy", "--type", target], data)


class X11Clipboard(ClipboardBackend):
    """Clipboard access through xclip."""

    name = "x11"

    def _list_types(self) -> List[str]:
        output = self._run(["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"])
        if not output:
            return []
        return [line.strip() for line in output.decode("utf-8", errors="ignore").splitlines() if line.strip()]

    def _read(self, target: str) -> bytes:
        output = self._run(["xclip", "-selection", "clipboard", "-t", target, "-o"])
        return output or b""

    def _write(self, data: bytes, target: str) -> None:
        self._run_write(["xclip", "-selection", "clipboard", "-t", target, "-i"], data)
