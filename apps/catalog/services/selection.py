"""
Turns the editor's loosely-typed selection payload into a ``Selection``.
"""

from collections.abc import Mapping

from apps.catalog.combinations import Selection, drop_empty
from apps.catalog.exceptions import EmptySelection, InvalidSelection
from apps.catalog.models import AttributeValue

_GROUP_TYPES = (list, tuple, set, frozenset)


def _check_groups(groups):
    for group in groups:
        if not isinstance(group, _GROUP_TYPES):
            raise InvalidSelection('Each selection entry must be an array of attribute value ids')


def resolve_selection(raw) -> Selection:
    """
    Validate a selection against the catalog.

    Accepts a ``Selection``, a list of value-id lists (one list per
    attribute) or a mapping of attribute id to value ids. Emptiness is
    checked before the catalog is read. A ``Selection`` is re-checked like a
    mapping; building one does not prove its ids belong to its attributes.
    """
    if isinstance(raw, Selection):
        raw = dict(raw.items())

    if isinstance(raw, Mapping):
        _check_groups(raw.values())
        keyed = [(key, value_ids) for key, value_ids in raw.items() if value_ids]
        if not keyed:
            raise EmptySelection()
        try:
            declared = [int(key) for key, _ in keyed]
            groups = drop_empty(value_ids for _, value_ids in keyed)
        except (TypeError, ValueError) as exc:
            raise InvalidSelection('Attribute and value ids must be integers') from exc
    elif isinstance(raw, _GROUP_TYPES) or raw is None:
        _check_groups(raw or [])
        try:
            groups = drop_empty(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidSelection('Attribute value ids must be integers') from exc
        declared = None
    else:
        raise InvalidSelection('Selection must be an array of arrays or an object')

    all_ids = {value_id for group in groups for value_id in group}
    owners = dict(
        AttributeValue.objects.filter(pk__in=all_ids).values_list('id', 'attribute_id')
    )
    unknown = sorted(all_ids - set(owners))
    if unknown:
        raise InvalidSelection(f"Unknown attribute value ids: {', '.join(map(str, unknown))}")

    resolved = {}
    for index, group in enumerate(groups):
        attribute_ids = {owners[value_id] for value_id in group}
        if len(attribute_ids) != 1:
            raise InvalidSelection('Each selection entry must hold values of a single attribute')
        attribute_id = attribute_ids.pop()
        if declared is not None and declared[index] != attribute_id:
            raise InvalidSelection(
                f"Values selected under attribute {declared[index]} belong to attribute {attribute_id}"
            )
        if attribute_id in resolved:
            raise InvalidSelection(f"Attribute {attribute_id} is selected more than once")
        resolved[attribute_id] = group

    return Selection(resolved)
