"""I/O utilities: enumerating, decoding and encoding images.

This module is the codec and filesystem side of the engine. It turns files
into ``PixelBuffer`` values (optionally several at once), turns buffers back
into encoded bytes, and maps resampling method names to Pillow constants.
"""

from __future__ import annotations

import io
import logging
import struct
from concurrent import futures
from pathlib import Path
from typing import Generator, List, Optional, Sequence, Tuple, Union

import piexif
from PIL import Image, ImageOps, UnidentifiedImageError

from config import IMAGE_EXTENSIONS

from .errors import DecodeError
from .pixels import PixelBuffer

logger = logging.getLogger(__name__)

# Pillow format names by file suffix
FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "webp": "WEBP",
}


def iter_image_paths(
    input_path: Path, extensions: Optional[Sequence[str]] = None
) -> Generator[Path, None, None]:
    """Yield image file paths from a file or directory.

    Parameters
    ----------
    input_path
        A path to a single image or a directory containing images.
    extensions
        Accepted suffixes (with leading dot). Defaults to ``IMAGE_EXTENSIONS``.

    Yields
    ------
    Path
        Individual image file paths, sorted.
    """

    accepted = {e.lower() for e in (extensions or IMAGE_EXTENSIONS)}
    path = Path(input_path)
    if path.is_file():
        if path.suffix.lower() in accepted:
            yield path
        return
    if path.is_dir():
        for p in sorted(path.rglob("*")):
            if p.is_file() and p.suffix.lower() in accepted:
                yield p


def ensure_dir(path: Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def decode_image(source: Union[Path, bytes]) -> Tuple[PixelBuffer, Optional[bytes]]:
    """Decode a file or raw bytes into an RGBA buffer.

    Parameters
    ----------
    source
        Path to an image file, or the encoded bytes themselves.

    Returns
    -------
    tuple
        A tuple of (PixelBuffer, exif_bytes or None).

    Raises
    ------
    DecodeError
        If the source is missing, unreadable or not an image.
    """

    label = str(source) if isinstance(source, Path) else f"<{len(source)} bytes>"
    try:
        stream = source if isinstance(source, Path) else io.BytesIO(source)
        with Image.open(stream) as img:
            exif_bytes = img.info.get("exif") or None
            # apply camera orientation so geometry sees the displayed axes
            buf = PixelBuffer.from_image(ImageOps.exif_transpose(img))
    except FileNotFoundError as exc:
        raise DecodeError(f"Image not found: {label}") from exc
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
    ) as exc:
        raise DecodeError(f"Cannot decode image {label}: {exc}") from exc
    logger.debug("Decoded %s (%dx%d)", label, buf.width, buf.height)
    return buf, exif_bytes


def decode_many(
    paths: Sequence[Path],
    workers: int = 4,
    timeout: Optional[float] = None,
) -> List[Union[Tuple[PixelBuffer, Optional[bytes]], Exception]]:
    """Decode ``paths`` concurrently.

    Results are returned in input order whatever order the decodes finish in.
    A failed decode is returned in its slot as the raised exception so the
    caller decides whether it aborts the batch.

    Parameters
    ----------
    paths
        Files to decode.
    workers
        Thread pool size.
    timeout
        Seconds to wait for each result; ``None`` waits indefinitely.
    """

    results: List[Union[Tuple[PixelBuffer, Optional[bytes]], Exception]] = []
    timed_out = False
    ex = futures.ThreadPoolExecutor(max_workers=max(1, workers))
    try:
        pending = [ex.submit(decode_image, Path(p)) for p in paths]
        for path, future in zip(paths, pending):
            try:
                results.append(future.result(timeout=timeout))
            except DecodeError as exc:
                results.append(exc)
            except futures.TimeoutError:
                timed_out = True
                future.cancel()
                results.append(DecodeError(f"Timed out decoding {path}"))
    finally:
        # a hung decode keeps its thread; do not join it
        ex.shutdown(wait=not timed_out, cancel_futures=timed_out)
    return results


def _refresh_exif(exif_bytes: bytes, width: int, height: int) -> Optional[bytes]:
    """Rewrite the pixel-dimension and orientation tags, drop the stale thumbnail."""

    try:
        exif = piexif.load(exif_bytes)
        exif.setdefault("Exif", {})
        exif["Exif"][piexif.ExifIFD.PixelXDimension] = width
        exif["Exif"][piexif.ExifIFD.PixelYDimension] = height
        exif.setdefault("0th", {})
        exif["0th"][piexif.ImageIFD.Orientation] = 1
        exif["thumbnail"] = None
        exif["1st"] = {}
        return piexif.dump(exif)
    except (ValueError, struct.error) as exc:
        logger.debug("Dropping unreadable EXIF block: %s", exc)
        return None


def _save_params(fmt: str, quality: Optional[int]) -> dict:
    # Favor high quality when writing lossy formats
    if fmt == "JPEG":
        return {"quality": quality or 95, "subsampling": 0, "optimize": True}
    if fmt == "PNG":
        return {"optimize": True}
    if fmt == "WEBP":
        return {"quality": quality or 95}
    return {}


def format_for(name: str) -> str:
    """Pillow format name for a suffix or format label such as ``png`` or ``.jpg``."""

    key = name.lower().lstrip(".")
    if key not in FORMATS:
        choices = ", ".join(sorted(FORMATS))
        raise ValueError(f"Unsupported output format '{name}'. Choose from: {choices}")
    return FORMATS[key]


def encode_buffer(
    buf: PixelBuffer,
    fmt: str = "png",
    exif: Optional[bytes] = None,
    quality: Optional[int] = None,
) -> bytes:
    """Encode ``buf`` to ``fmt`` bytes, attaching ``exif`` when given."""

    pil_format = format_for(fmt)
    image = buf.to_image()
    if pil_format == "JPEG":
        image = image.convert("RGB")
    params = _save_params(pil_format, quality)
    if exif:
        refreshed = _refresh_exif(exif, buf.width, buf.height)
        if refreshed:
            params["exif"] = refreshed
    out = io.BytesIO()
    image.save(out, format=pil_format, **params)
    return out.getvalue()


def save_buffer(
    buf: PixelBuffer,
    dest_path: Path,
    keep_metadata: bool = True,
    original_exif: Optional[bytes] = None,
    quality: Optional[int] = None,
) -> None:
    """Encode ``buf`` by ``dest_path``'s suffix and write it.

    Parameters
    ----------
    buf
        Pixels to write.
    dest_path
        Destination path; its suffix selects the format.
    keep_metadata
        Whether to carry ``original_exif`` into the output.
    original_exif
        EXIF bytes captured when the source was decoded.
    """

    dest_path = Path(dest_path)
    ensure_dir(dest_path.parent)
    exif = original_exif if keep_metadata else None
    data = encode_buffer(buf, dest_path.suffix, exif=exif, quality=quality)
    dest_path.write_bytes(data)
    logger.debug("Wrote %s (%dx%d)", dest_path, buf.width, buf.height)


def map_resample(name: str) -> int:
    """Map a resample name to a Pillow constant.

    Parameters
    ----------
    name
        One of 'nearest', 'bilinear', 'bicubic', 'lanczos'.

    Returns
    -------
    int
        Pillow resampling constant.
    """

    name_lower = (name or "").lower()
    if name_lower == "nearest":
        return Image.NEAREST
    if name_lower == "bilinear":
        return Image.BILINEAR
    if name_lower == "bicubic":
        return Image.BICUBIC
    return Image.LANCZOS
