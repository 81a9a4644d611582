"""JSON encoding for structured columns."""

import json
from typing import Any, Optional

from smartmeet.store.errors import EncodingError


def encode_json(value: Any, field: str, nullable: bool = True) -> Optional[str]:
    """
    Encode a structured value for a text column.

    None stays NULL on nullable columns; otherwise it is stored as the JSON
    text "null".
    """
    if value is None and nullable:
        return None
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot encode {field} as JSON: {e}") from e


def decode_json(text: Optional[str], field: str) -> Any:
    """Decode a text column back into its structured value."""
    if text is None:
        return None
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot decode {field} from JSON: {e}") from e
