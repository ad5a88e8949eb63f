"""
Carrier image module for spot-synchronizer.

Generates the placeholder cover JPEG and reads/writes its comment segment,
which is where the synchronization definition lives.

Usage:
    from spot_synchronizer.image import generate_placeholder_image, write_comment

    cover = write_comment(generate_placeholder_image(), payload)
"""

from spot_synchronizer.image.jpeg import (
    MAX_COMMENT_BYTES,
    PALETTE,
    generate_placeholder_image,
    read_comment,
    write_comment,
)

__all__ = [
    "MAX_COMMENT_BYTES",
    "PALETTE",
    "generate_placeholder_image",
    "read_comment",
    "write_comment",
]
