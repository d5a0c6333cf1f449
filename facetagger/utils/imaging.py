from io import BytesIO
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, UnidentifiedImageError

from facetagger.errors import ImageDecodeError


def image_size(source: Union[bytes, Path]) -> Tuple[int, int]:
    """Read (width, height) from the image header without decoding pixel data."""
    fp = BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        with Image.open(fp) as im:
            return im.size
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError("unreadable image header") from exc


def sniff_mime(data: bytes, default: str = "image/jpeg") -> str:
    try:
        with Image.open(BytesIO(data)) as im:
            return Image.MIME.get(im.format or "", default)
    except (UnidentifiedImageError, OSError, ValueError):
        return default


def crop_to_jpeg(data: bytes, box: Tuple[int, int, int, int], quality: int = 90) -> bytes:
    """
    Crop ``box`` (left, upper, right, lower) out of an encoded image.

    Returns JPEG bytes suitable for display in chat clients.
    """
    try:
        with Image.open(BytesIO(data)) as im:
            face = im.crop(box)
            if face.mode not in ("RGB", "L"):
                face = face.convert("RGB")
            buf = BytesIO()
            face.save(buf, format="JPEG", quality=quality)
            return buf.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ImageDecodeError("failed to decode source image") from exc
