"""
JPEG carrier images for synchronization definitions.

A synchronized playlist stores its rule inside its own cover: a tiny
placeholder JPEG whose comment (COM) segment holds the encoded
definition. This module generates such images and reads/writes the
comment. It knows nothing about what the payload means.

Pillow handles both directions: Image.save(..., comment=...) writes a
COM segment, and Image.open() exposes it as info["comment"].

Size Constraints:
    A COM segment length field is 16 bits and counts itself, so a
    comment holds at most MAX_COMMENT_BYTES bytes.
"""

import random
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from spot_synchronizer.core.exceptions import ImageError


MAX_COMMENT_BYTES = 65533

PLACEHOLDER_WIDTH = 3
PLACEHOLDER_HEIGHT = 3

# Colors for the placeholder cover tiles
PALETTE: tuple[tuple[int, int, int], ...] = (
    (0xE6, 0x39, 0x46),
    (0xF1, 0xFA, 0xEE),
    (0xA8, 0xDA, 0xDC),
    (0x45, 0x7B, 0x9D),
    (0x1D, 0x35, 0x57),
    (0xF4, 0xA2, 0x61),
    (0x2A, 0x9D, 0x8F),
    (0xE9, 0xC4, 0x6A),
)

JPEG_QUALITY = 95


def generate_placeholder_image(
    width: int = PLACEHOLDER_WIDTH,
    height: int = PLACEHOLDER_HEIGHT,
    palette: tuple[tuple[int, int, int], ...] = PALETTE,
    rng: random.Random | None = None
) -> bytes:
    """
    Generate a small JPEG made of pixels picked from a palette.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        palette: RGB colors to pick from.
        rng: Random source. Pass a seeded random.Random for a reproducible
             image; defaults to the module-level generator.

    Returns:
        JPEG-encoded image bytes.

    Raises:
        ImageError: If the dimensions are not positive or the palette is empty.
    """
    if width < 1 or height < 1:
        raise ImageError(
            f"Invalid placeholder size {width}x{height}",
            details={"width": width, "height": height}
        )
    if not palette:
        raise ImageError("Placeholder palette is empty")

    rng = rng or random
    image = Image.new("RGB", (width, height))
    image.putdata([rng.choice(palette) for _ in range(width * height)])

    output = BytesIO()
    image.save(output, format="JPEG", quality=JPEG_QUALITY)
    return output.getvalue()


def write_comment(image_bytes: bytes, payload: bytes) -> bytes:
    """
    Return a copy of a JPEG with `payload` stored as its comment.

    The image is re-encoded; any existing comment is replaced.

    Raises:
        ImageError: If the image cannot be decoded or the payload does
                    not fit into a single comment segment.
    """
    if len(payload) > MAX_COMMENT_BYTES:
        raise ImageError(
            f"Comment too large for a JPEG segment ({len(payload)} bytes)",
            details={"size": len(payload), "max_size": MAX_COMMENT_BYTES}
        )

    try:
        with Image.open(BytesIO(image_bytes)) as image:
            rgb = image.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageError(
            f"Cannot decode image to write comment: {e}",
            details={"original_error": str(e)}
        ) from e

    output = BytesIO()
    rgb.save(output, format="JPEG", quality=JPEG_QUALITY, comment=payload)
    return output.getvalue()


def read_comment(image_bytes: bytes) -> bytes | None:
    """
    Read the comment stored in a JPEG.

    Returns:
        The comment bytes, or None if the image has no comment.

    Raises:
        ImageError: If the bytes are not a decodable image.
    """
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            comment = image.info.get("comment")
    except (UnidentifiedImageError, OSError) as e:
        raise ImageError(
            f"Cannot decode cover image: {e}",
            details={"original_error": str(e)}
        ) from e

    if comment is None:
        return None
    if isinstance(comment, str):
        comment = comment.encode("utf-8")
    return comment
