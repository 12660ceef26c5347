"""Decode, bound and re-encode uploaded images into the canonical JPEG form."""

from io import BytesIO
from typing import Tuple
from PIL import Image, ImageOps, UnidentifiedImageError

from ..models.schemas import NormalizedImage
from ..utils.config import PolicyConfig
from ..utils.errors import TooSmallError, UnsupportedImageError
from ..utils.images import get_image_dimensions
from ..utils.logger import get_logger

logger = get_logger(__name__)

BACKGROUND_COLOR = (255, 255, 255)


def fit_within(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """
    Scale dimensions down to fit a bounding box, preserving aspect ratio.

    Never enlarges: dimensions that already fit are returned unchanged.
    """
    if width <= max_width and height <= max_height:
        return width, height

    ratio = min(max_width / width, max_height / height)
    new_width = min(max_width, max(1, round(width * ratio)))
    new_height = min(max_height, max(1, round(height * ratio)))
    return new_width, new_height


class ImageNormalizer:
    """Produces a deterministic progressive JPEG from JPEG/PNG input.

    Identical input bytes and policy give byte-identical output: no EXIF,
    ICC profile or other metadata is copied to the encoded result.
    """

    def __init__(self, policy: PolicyConfig):
        self.policy = policy

    def normalize(self, image_bytes: bytes) -> NormalizedImage:
        """
        Normalize raw image bytes.

        Args:
            image_bytes: Encoded image as uploaded

        Returns:
            NormalizedImage with JPEG bytes and post-resize dimensions

        Raises:
            UnsupportedImageError: Bytes cannot be decoded as an image
            TooSmallError: Original width or height below the policy minimum
        """
        image = self._decode(image_bytes)
        original_width, original_height = image.size

        min_dim = self.policy.min_dimension
        if original_width < min_dim or original_height < min_dim:
            raise TooSmallError(
                f"Image is {original_width}x{original_height}, minimum is {min_dim}x{min_dim}",
                user_message=f"Image must be at least {min_dim}x{min_dim} pixels",
            )

        # Camera orientation is applied to pixels since metadata is dropped.
        image = ImageOps.exif_transpose(image)
        image = self._to_rgb(image)

        target = fit_within(
            image.width,
            image.height,
            self.policy.max_width,
            self.policy.max_height,
        )
        if target != image.size:
            logger.info(
                f"Resizing image from {image.width}x{image.height} to {target[0]}x{target[1]}",
                extra={
                    "original_width": image.width,
                    "original_height": image.height,
                    "new_width": target[0],
                    "new_height": target[1],
                }
            )
            image = image.resize(target, Image.LANCZOS)

        buffer = BytesIO()
        image.save(
            buffer,
            format="JPEG",
            quality=self.policy.output_quality,
            progressive=True,
            optimize=False,
            exif=b"",
        )
        data = buffer.getvalue()

        width, height = image.size
        self._log_processed(data, width, height, original_width, original_height)

        return NormalizedImage(
            data=data,
            width=width,
            height=height,
            original_width=original_width,
            original_height=original_height,
        )

    def _decode(self, image_bytes: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(image_bytes))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise UnsupportedImageError(
                f"Failed to decode image: {e}",
                user_message=f"Unsupported or corrupt image: {e}",
            )
        return image

    def _to_rgb(self, image: Image.Image) -> Image.Image:
        """Flatten transparency onto a white background and drop other modes."""
        if image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, BACKGROUND_COLOR)
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if image.mode != "RGB":
            return image.convert("RGB")
        return image

    def _log_processed(
        self,
        data: bytes,
        width: int,
        height: int,
        original_width: int,
        original_height: int,
    ) -> None:
        # Informational only; the encoded result is never rejected here.
        try:
            encoded_width, encoded_height = get_image_dimensions(data)
        except OSError as e:
            logger.warning(f"Could not read processed image metadata: {e}")
            return

        logger.info(
            "Image normalized",
            extra={
                "original_width": original_width,
                "original_height": original_height,
                "width": encoded_width,
                "height": encoded_height,
                "size_kb": round(len(data) / 1024, 1),
                "dimensions_match": (encoded_width, encoded_height) == (width, height),
            }
        )
