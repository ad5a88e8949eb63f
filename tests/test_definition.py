"""Test encoding and decoding of synchronization definitions"""

import json

import pytest

from spot_synchronizer.core.exceptions import (
    DefinitionCorruptError,
    DefinitionNotFoundError,
)
from spot_synchronizer.image.jpeg import MAX_COMMENT_BYTES
from spot_synchronizer.sync.definition import decode_definition, encode_definition
from spot_synchronizer.sync.models import SynchronizationDefinition


class TestEncodeDefinition:
    """Test the cover comment payload format"""

    def test_uses_stable_key_names(self):
        definition = SynchronizationDefinition(included=("a", "b"), excluded=(), required=("c",))

        data = json.loads(encode_definition(definition))

        assert data == {
            "included_playlist_ids": ["a", "b"],
            "excluded_playlist_ids": [],
            "required_playlist_ids": ["c"],
        }

    def test_payload_is_compact_ascii(self):
        payload = encode_definition(SynchronizationDefinition(included=("a",)))

        assert b" " not in payload
        payload.decode("ascii")

    def test_decodes_back_to_equal_definition(self):
        definition = SynchronizationDefinition(
            included=("37i9dQZF1DXcBWIGoYBM5M", "1a2b3c"),
            excluded=("x",),
            required=(),
        )

        assert decode_definition(encode_definition(definition)) == definition

    def test_empty_definition_survives(self):
        definition = SynchronizationDefinition()
        assert decode_definition(encode_definition(definition)) == definition

    def test_oversized_definition_rejected(self):
        ids = tuple(f"{i:022d}" for i in range(MAX_COMMENT_BYTES // 20))

        with pytest.raises(DefinitionCorruptError) as exc_info:
            encode_definition(SynchronizationDefinition(included=ids))

        assert exc_info.value.details["max_size"] == MAX_COMMENT_BYTES


class TestDecodeDefinition:
    """Test rejection of missing and malformed payloads"""

    @pytest.mark.parametrize("payload", [None, b""])
    def test_missing_payload(self, payload):
        with pytest.raises(DefinitionNotFoundError):
            decode_definition(payload)

    def test_invalid_json(self):
        with pytest.raises(DefinitionCorruptError):
            decode_definition(b"{not json")

    def test_invalid_utf8(self):
        with pytest.raises(DefinitionCorruptError):
            decode_definition(b"\xff\xfe\xfa")

    def test_not_an_object(self):
        with pytest.raises(DefinitionCorruptError):
            decode_definition(b'["a", "b"]')

    def test_missing_key(self):
        payload = b'{"included_playlist_ids":["a"],"excluded_playlist_ids":[]}'

        with pytest.raises(DefinitionCorruptError) as exc_info:
            decode_definition(payload)

        assert exc_info.value.details["missing_key"] == "required_playlist_ids"

    @pytest.mark.parametrize("bad_value", ['"a"', "[1, 2]", "null", '["a", null]'])
    def test_ids_must_be_list_of_strings(self, bad_value):
        payload = (
            '{"included_playlist_ids":' + bad_value + ','
            '"excluded_playlist_ids":[],"required_playlist_ids":[]}'
        ).encode()

        with pytest.raises(DefinitionCorruptError):
            decode_definition(payload)

    def test_extra_keys_ignored(self):
        payload = (
            b'{"included_playlist_ids":["a"],"excluded_playlist_ids":[],'
            b'"required_playlist_ids":[],"version":2}'
        )

        assert decode_definition(payload) == SynchronizationDefinition(included=("a",))
