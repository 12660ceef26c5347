"""Image encoding helpers."""

import base64
from io import BytesIO
from typing import Dict, Optional, Tuple
from PIL import Image

from .logger import get_logger

logger = get_logger(__name__)


def bytes_to_base64(image_bytes: bytes) -> str:
    """
    Convert image bytes to base64 string.

    Args:
        image_bytes: Raw image bytes

    Returns:
        Base64 encoded string
    """
    return base64.b64encode(image_bytes).decode('utf-8')


def to_data_uri(image_bytes: bytes, media_type: str = "image/jpeg") -> str:
    """Encode image bytes as a ``data:`` URI for transport."""
    return f"data:{media_type};base64,{bytes_to_base64(image_bytes)}"


def canonical_media_type(media_type: Optional[str], aliases: Dict[str, str]) -> str:
    """
    Lower-case a declared media type and resolve known aliases.

    ``image/jpg`` and ``IMAGE/JPEG; charset=binary`` both become ``image/jpeg``.
    """
    if not media_type:
        return ""
    base = media_type.split(";", 1)[0].strip().lower()
    return aliases.get(base, base)


def get_image_dimensions(image_bytes: bytes) -> Tuple[int, int]:
    """
    Get width and height of an encoded image without decoding pixel data.

    Raises:
        OSError: If the header cannot be read
    """
    with Image.open(BytesIO(image_bytes)) as image:
        return image.size
