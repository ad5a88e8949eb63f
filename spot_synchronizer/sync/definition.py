"""
Encoding of synchronization definitions.

The payload is a compact JSON object stored in the cover's JPEG comment:

    {"included_playlist_ids":["a","b"],"excluded_playlist_ids":[],
     "required_playlist_ids":["c"]}

The key names are the format written since the first release, so covers
created by older versions keep decoding. The payload is 7-bit ASCII
(ensure_ascii) and must fit into one JPEG comment segment.
"""

import json
from typing import Any

from spot_synchronizer.core.exceptions import (
    DefinitionCorruptError,
    DefinitionNotFoundError,
)
from spot_synchronizer.image.jpeg import MAX_COMMENT_BYTES
from spot_synchronizer.sync.models import SynchronizationDefinition


INCLUDED_KEY = "included_playlist_ids"
EXCLUDED_KEY = "excluded_playlist_ids"
REQUIRED_KEY = "required_playlist_ids"


def encode_definition(definition: SynchronizationDefinition) -> bytes:
    """
    Serialize a definition to the cover comment payload.

    Raises:
        DefinitionCorruptError: If the payload would not fit in a JPEG
                                comment segment.
    """
    payload = json.dumps(
        {
            INCLUDED_KEY: list(definition.included),
            EXCLUDED_KEY: list(definition.excluded),
            REQUIRED_KEY: list(definition.required),
        },
        ensure_ascii=True,
        separators=(",", ":"),
    ).encode("ascii")

    if len(payload) > MAX_COMMENT_BYTES:
        raise DefinitionCorruptError(
            f"Definition too large to store in a cover ({len(payload)} bytes)",
            details={"size": len(payload), "max_size": MAX_COMMENT_BYTES}
        )
    return payload


def decode_definition(payload: bytes | None) -> SynchronizationDefinition:
    """
    Parse a cover comment payload back into a definition.

    Args:
        payload: Comment bytes read from the cover, or None.

    Returns:
        The decoded SynchronizationDefinition.

    Raises:
        DefinitionNotFoundError: If there is no payload at all.
        DefinitionCorruptError: If the payload is not a well-formed
                                definition. Never falls back to an
                                empty definition.
    """
    if not payload:
        raise DefinitionNotFoundError("Cover carries no synchronization definition")

    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DefinitionCorruptError(
            f"Synchronization definition is not valid JSON: {e}",
            details={"original_error": str(e)}
        ) from e

    if not isinstance(data, dict):
        raise DefinitionCorruptError(
            "Synchronization definition must be a JSON object",
            details={"type": type(data).__name__}
        )

    return SynchronizationDefinition(
        included=_parse_ids(data, INCLUDED_KEY),
        excluded=_parse_ids(data, EXCLUDED_KEY),
        required=_parse_ids(data, REQUIRED_KEY),
    )


def _parse_ids(data: dict[str, Any], key: str) -> tuple[str, ...]:
    if key not in data:
        raise DefinitionCorruptError(
            f"Synchronization definition is missing '{key}'",
            details={"missing_key": key}
        )

    value = data[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise DefinitionCorruptError(
            f"'{key}' must be a list of playlist IDs",
            details={"key": key}
        )
    return tuple(value)
