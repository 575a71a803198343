"""JSON Schema validation of raw intent payloads.

Editors send intents as JSON.  Payloads are checked against the schema
generated from the intent models before they reach the gateway, so a bad
payload is reported with a JSON-pointer style location.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, List

import jsonschema

from story_maker.intents import intent_json_schema


@lru_cache(maxsize=1)
def _validator() -> jsonschema.protocols.Validator:
    schema = intent_json_schema()
    cls = jsonschema.validators.validator_for(schema)
    cls.check_schema(schema)
    return cls(schema)


def validate_intent_payload(data: Any) -> None:
    """Validate one intent payload.

    Raises jsonschema.ValidationError if non-conformant.
    """
    _validator().validate(data)


def intent_payload_errors(data: Any) -> List[str]:
    """All schema violations of *data* as ``"<path>: <message>"`` strings."""
    errors = sorted(_validator().iter_errors(data), key=lambda e: list(e.absolute_path))
    return [
        f"{'/'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
        for err in errors
    ]
