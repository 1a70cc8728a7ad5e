"""Asset lookup across an ordered chain of resource locations.

Sources are tried cheapest first and the first one that produces a usable
asset wins:

1. package data of the component package (``importlib.resources``)
2. the Qt resource system (``:/folder/file``, compiled with ``pyside6-rcc``)
3. the launch origin directory (next to the started script or executable)
4. the application base directory on the local filesystem

Every attempt is recorded, so a failed lookup can be shown to the user as a
readable trail instead of a single opaque error.
"""

from __future__ import annotations

import importlib.resources
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from models import AssetKind, AssetRequest, ResolutionAttempt, ResolvedAsset, SourceKind

try:
    from PySide6.QtCore import QFile, QIODevice
    from PySide6.QtGui import QImage
except Exception:  # pragma: no cover
    QFile = None  # type: ignore
    QIODevice = None  # type: ignore
    QImage = None  # type: ignore

_LOGGER = logging.getLogger("analog_clock.assets")

Fetcher = Callable[[AssetRequest], bytes]
ImageDecoder = Callable[[bytes], Any]


def default_site_of_origin_dir() -> Path:
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path.cwd()


def default_base_dir() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent


def component_fetcher(package: str) -> Fetcher:
    def fetch(request: AssetRequest) -> bytes:
        root = importlib.resources.files(package)
        return root.joinpath(request.folder).joinpath(request.filename).read_bytes()

    return fetch


def qt_resource_fetcher() -> Fetcher:
    def fetch(request: AssetRequest) -> bytes:
        if QFile is None:
            raise RuntimeError("PySide6 is not installed")
        path = f":/{request.relative_path}"
        handle = QFile(path)
        if not handle.open(QIODevice.ReadOnly):
            raise OSError(f"Qt resource not available: {path}")
        try:
            return bytes(handle.readAll().data())
        finally:
            handle.close()

    return fetch


def directory_fetcher(root: Path) -> Fetcher:
    def fetch(request: AssetRequest) -> bytes:
        return (root / request.folder / request.filename).read_bytes()

    return fetch


def local_file_fetcher(base_dir: Path) -> Fetcher:
    def fetch(request: AssetRequest) -> bytes:
        path = base_dir / request.folder / request.filename
        if not path.is_file():
            raise FileNotFoundError(f"file not found:{path}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise OSError(f"file:{path} => {exc}") from exc

    return fetch


def default_sources(
    component_package: str = "clock_assets",
    site_of_origin_dir: Path | None = None,
    base_dir: Path | None = None,
) -> list[tuple[SourceKind, Fetcher]]:
    return [
        (SourceKind.EMBEDDED_COMPONENT, component_fetcher(component_package)),
        (SourceKind.EMBEDDED_PACK, qt_resource_fetcher()),
        (SourceKind.SITE_OF_ORIGIN, directory_fetcher(site_of_origin_dir or default_site_of_origin_dir())),
        (SourceKind.LOCAL_FILE, local_file_fetcher(base_dir or default_base_dir())),
    ]


def decode_image(data: bytes) -> Any:
    """Decode image bytes into a fully loaded ``QImage``."""
    if QImage is None:
        raise RuntimeError("PySide6 is not installed")
    image = QImage()
    if not image.loadFromData(data):
        raise ValueError("image data could not be decoded")
    return image


def format_trace(trace: Sequence[ResolutionAttempt]) -> str:
    lines = []
    for attempt in trace:
        if attempt.ok:
            lines.append(f"OK {attempt.source.value}:{attempt.message}")
        elif attempt.source == SourceKind.LOCAL_FILE:
            # Local file messages already start with "file".
            lines.append(f"x {attempt.message}")
        else:
            lines.append(f"x {attempt.source.value}: {attempt.message}")
    return "\n".join(lines)


class AssetResolver:
    def __init__(
        self,
        sources: Sequence[tuple[SourceKind, Fetcher]] | None = None,
        image_decoder: Optional[ImageDecoder] = None,
    ) -> None:
        self._sources = list(sources) if sources is not None else default_sources()
        self._decode_image = image_decoder or decode_image

    def resolve(
        self,
        request: AssetRequest,
        kind: AssetKind,
    ) -> tuple[Optional[ResolvedAsset], list[ResolutionAttempt]]:
        trace: list[ResolutionAttempt] = []
        for source, fetch in self._sources:
            try:
                data = fetch(request)
                if data is None:
                    raise OSError("source returned no data")
                payload = self._decode_image(data) if kind == AssetKind.IMAGE else bytes(data)
            except Exception as exc:
                message = str(exc) or type(exc).__name__
                _LOGGER.debug("[assets] %s miss for %s: %s", source.value, request.relative_path, message)
                trace.append(ResolutionAttempt(source=source, ok=False, message=message))
                continue
            trace.append(ResolutionAttempt(source=source, ok=True, message=request.relative_path))
            _LOGGER.debug("[assets] %s loaded from %s", request.relative_path, source.value)
            return ResolvedAsset(kind=kind, source=source, payload=payload), trace

        _LOGGER.warning(
            "[assets] %s could not be resolved:\n%s", request.relative_path, format_trace(trace)
        )
        return None, trace
