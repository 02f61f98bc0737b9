from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .errors import DecodeError, EncodeError, ErrorCode

SCHEMA_DIR = Path(__file__).parent / "schemas"

# Mapping document kind -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    "envelope": "envelope.json",
    "metadata": "metadata.json",
}


def _schema_path(kind: str) -> Optional[Path]:
    filename = SCHEMA_REGISTRY.get(kind)
    if not filename:
        return None
    path = SCHEMA_DIR / filename
    return path if path.exists() else None


@lru_cache(maxsize=8)
def load_schema(kind: str) -> Optional[dict]:
    """Load JSON schema for a document kind if present."""
    path = _schema_path(kind)
    if not path:
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_envelope(document: Any) -> None:
    """Ensure an inbound text frame is an object with a string ``channel``."""
    schema = load_schema("envelope")
    try:
        jsonschema.validate(instance=document, schema=schema)
    except jsonschema.ValidationError as exc:
        raise DecodeError(ErrorCode.INVALID_ENVELOPE, f"Envelope validation failed: {exc.message}") from exc


def validate_metadata(metadata: Any) -> None:
    """Handshake metadata must map strings to strings."""
    schema = load_schema("metadata")
    try:
        jsonschema.validate(instance=metadata, schema=schema)
    except jsonschema.ValidationError as exc:
        raise EncodeError(ErrorCode.INVALID_METADATA, f"Metadata validation failed: {exc.message}") from exc


__all__ = ["load_schema", "validate_envelope", "validate_metadata"]
