"""Schema-driven grouping of the flat namespace into form categories.

The schema is a JSON Schema whose top-level ``properties`` are categories and
whose second-level ``properties`` are flat keys. The UI schema may carry a
root ``ui:order`` list and per-category ``ui:widget: hidden`` markers.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .models import SchemaCategory


logger = logging.getLogger(__name__)

MISC_CATEGORY = "misc"
PRESERVED_CATEGORY = "_preserved"
HIDDEN_WIDGET = "hidden"


def schema_categories(schema: Optional[Mapping[str, Any]]) -> List[SchemaCategory]:
    """All top-level schema categories in declaration order."""
    categories: List[SchemaCategory] = []
    for key, category_schema in ((schema or {}).get('properties') or {}).items():
        category_schema = category_schema or {}
        categories.append(SchemaCategory(
            key=key,
            title=category_schema.get('title') or key,
            fields=list((category_schema.get('properties') or {}).keys()),
        ))
    return categories


def sections_from_schema(
    schema: Optional[Mapping[str, Any]],
    ui_schema: Optional[Mapping[str, Any]] = None,
) -> List[SchemaCategory]:
    """Navigable sections: visible categories, ``ui:order`` first, then the rest.

    Example:
        >>> schema = {'properties': {'a': {}, 'b': {}, 'c': {}}}
        >>> ui = {'ui:order': ['c', 'a'], 'b': {'ui:widget': 'hidden'}}
        >>> [s.key for s in sections_from_schema(schema, ui)]
        ['c', 'a']
    """
    ui_schema = ui_schema or {}
    visible = [
        category for category in schema_categories(schema)
        if (ui_schema.get(category.key) or {}).get('ui:widget') != HIDDEN_WIDGET
    ]

    order = ui_schema.get('ui:order')
    if not order:
        return visible

    by_key = {category.key: category for category in visible}
    ordered = [by_key[key] for key in order if key in by_key]
    ordered_keys = {category.key for category in ordered}
    ordered.extend(category for category in visible if category.key not in ordered_keys)
    return ordered


def categorize(
    flat_data: Mapping[str, Any],
    schema: Optional[Mapping[str, Any]],
) -> Dict[str, Dict[str, Any]]:
    """Group flat keys under schema categories; unmatched keys go to ``misc``.

    Every category gets an entry (possibly empty). A key declared by more than
    one category lands in the first. Incoming keys named after a category are
    dropped so already-categorised data is not nested twice.

    Returns:
        ``{category: {flat key: value}}``
    """
    categories = schema_categories(schema)
    reserved = {category.key for category in categories} | {MISC_CATEGORY, PRESERVED_CATEGORY}

    clean = {}
    for key, value in flat_data.items():
        if key in reserved:
            logger.debug(f"Ignoring incoming key named after a category: {key}")
            continue
        clean[key] = value

    form_data: Dict[str, Dict[str, Any]] = {}
    claimed = set()
    for category in categories:
        bucket = form_data.setdefault(category.key, {})
        for field_key in category.fields:
            if field_key in clean and field_key not in claimed:
                bucket[field_key] = clean[field_key]
                claimed.add(field_key)

    unmatched = {key: value for key, value in clean.items() if key not in claimed}
    if unmatched:
        form_data[MISC_CATEGORY] = unmatched

    logger.debug(
        f"Categorised {len(claimed)} key(s) into {len(categories)} categories, "
        f"{len(unmatched)} in {MISC_CATEGORY}"
    )
    return form_data


def decategorize(form_data: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge every category back into one flat mapping."""
    flat: Dict[str, Any] = {}
    for category_data in form_data.values():
        if not isinstance(category_data, Mapping):
            continue
        flat.update(category_data)
    return flat
