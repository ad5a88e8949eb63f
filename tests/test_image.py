"""Test placeholder JPEG generation and comment segments"""

import random
from io import BytesIO

import pytest
from PIL import Image

from spot_synchronizer.core.exceptions import ImageError
from spot_synchronizer.image.jpeg import (
    MAX_COMMENT_BYTES,
    PALETTE,
    generate_placeholder_image,
    read_comment,
    write_comment,
)


class TestPlaceholderImage:
    """Test the generated carrier image"""

    def test_is_small_jpeg(self):
        jpeg = generate_placeholder_image()

        with Image.open(BytesIO(jpeg)) as image:
            assert image.format == "JPEG"
            assert image.size == (3, 3)

    def test_custom_size(self):
        jpeg = generate_placeholder_image(width=8, height=4)

        with Image.open(BytesIO(jpeg)) as image:
            assert image.size == (8, 4)

    def test_seeded_rng_is_reproducible(self):
        first = generate_placeholder_image(rng=random.Random(7))
        second = generate_placeholder_image(rng=random.Random(7))

        assert first == second

    def test_has_no_comment(self):
        assert read_comment(generate_placeholder_image()) is None

    @pytest.mark.parametrize("width,height", [(0, 3), (3, 0), (-1, -1)])
    def test_invalid_size(self, width, height):
        with pytest.raises(ImageError):
            generate_placeholder_image(width=width, height=height, palette=PALETTE)

    def test_empty_palette(self):
        with pytest.raises(ImageError):
            generate_placeholder_image(palette=())


class TestComment:
    """Test writing and reading the JPEG comment"""

    def test_comment_is_read_back(self):
        payload = b'{"included_playlist_ids":["a"]}'

        jpeg = write_comment(generate_placeholder_image(), payload)

        assert read_comment(jpeg) == payload

    def test_result_is_still_a_jpeg(self):
        jpeg = write_comment(generate_placeholder_image(), b"hello")

        with Image.open(BytesIO(jpeg)) as image:
            assert image.format == "JPEG"
            assert image.size == (3, 3)

    def test_existing_comment_replaced(self):
        jpeg = write_comment(generate_placeholder_image(), b"first")
        jpeg = write_comment(jpeg, b"second")

        assert read_comment(jpeg) == b"second"

    def test_payload_too_large(self):
        with pytest.raises(ImageError):
            write_comment(generate_placeholder_image(), b"x" * (MAX_COMMENT_BYTES + 1))

    def test_write_to_garbage_bytes(self):
        with pytest.raises(ImageError):
            write_comment(b"definitely not a jpeg", b"payload")

    def test_read_from_garbage_bytes(self):
        with pytest.raises(ImageError):
            read_comment(b"definitely not a jpeg")
