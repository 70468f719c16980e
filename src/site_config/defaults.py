"""Save-time defaulting of empty schema fields."""

import copy
import logging
from typing import Any, Dict, Mapping, Optional

from .categorizer import schema_categories


logger = logging.getLogger(__name__)

ZERO_VALUES = {
    'string': "",
    'integer': 0,
    'number': 0,
    'boolean': False,
    'array': [],
    'object': {},
}


def is_empty(value: Any) -> bool:
    """None, the empty string and the empty list count as empty."""
    return value is None or value == "" or (isinstance(value, list) and not value)


def zero_value(field_type: Any) -> Any:
    """Type-appropriate empty value for a JSON Schema ``type``.

    A list of types (``["string", "null"]``) uses its first non-null member.
    Unknown or missing types yield the empty string.
    """
    if isinstance(field_type, list):
        field_type = next((t for t in field_type if t != 'null'), None)
    return copy.deepcopy(ZERO_VALUES.get(field_type, ""))


def inject_schema_defaults(
    form_data: Mapping[str, Mapping[str, Any]],
    schema: Optional[Mapping[str, Any]],
) -> Dict[str, Dict[str, Any]]:
    """Fill empty schema-declared fields with their default or zero value.

    The input is not modified. Every schema category is present in the result.

    Args:
        form_data: Categorised form data
        schema: JSON Schema with category -> field properties

    Returns:
        A deep copy of form_data with defaults applied
    """
    result: Dict[str, Dict[str, Any]] = {
        key: dict(copy.deepcopy(value)) if isinstance(value, Mapping) else value
        for key, value in form_data.items()
    }
    properties = (schema or {}).get('properties') or {}

    filled = 0
    for category in schema_categories(schema):
        bucket = result.setdefault(category.key, {})
        field_schemas = (properties.get(category.key) or {}).get('properties') or {}
        for field_key in category.fields:
            if not is_empty(bucket.get(field_key)):
                continue
            field_schema = field_schemas.get(field_key) or {}
            default = field_schema.get('default')
            if default is not None:
                bucket[field_key] = copy.deepcopy(default)
            else:
                bucket[field_key] = zero_value(field_schema.get('type'))
            filled += 1

    logger.debug(f"Applied defaults to {filled} empty field(s)")
    return result
