"""Settings helpers shared by the server configuration."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def _non_empty(items: list[str]) -> list[str]:
    if not items:
        raise ValueError("String list value must not be empty")
    return items


def _parse_json_list(text: str) -> list[str]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return parsed


def parse_string_list(value: str | list[str]) -> list[str]:
    """Parse a non-empty string list from an env var or a config value.

    Accepts a list, a JSON array string ('["a","b"]') or a comma-separated
    string ('a,b'). Blank segments of a comma-separated value are skipped.
    """
    if isinstance(value, list):
        return _non_empty(value)

    text = value.strip()
    if text.startswith("["):
        return _non_empty(_parse_json_list(text))
    return _non_empty([part.strip() for part in text.split(",") if part.strip()])


# list-typed settings that accept the comma-separated form
STRING_LIST_FIELDS = frozenset({"cors_origins"})


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env source that hands string-list fields to validators unparsed.

    pydantic-settings JSON-decodes list fields from env vars before validators
    run, which rejects the comma-separated form.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
