"""One-way structural comparison and merge of table metadata.

Remote stores report far more than a definition declares (etags, row counts,
creation times, defaulted modes), so "is the table up to date" means: does
every value the definition declares already appear in the remote metadata.
"""

import copy
from typing import Any, Dict, Mapping


def is_subset(superset: Any, subset: Any) -> bool:
    """Check that ``subset`` is structurally contained in ``superset``.

    Mappings must contain every key of ``subset`` with a contained value;
    extra keys in ``superset`` are ignored. Sequences are compared by index and
    ``superset`` may be longer. Scalars must be equal, and booleans never equal
    numbers.

    Example:
        >>> is_subset({"a": 1, "b": 2, "c": 3}, {"a": 1, "b": 2})
        True
        >>> is_subset({"a": 1, "b": 2, "c": 3}, {"a": 1, "b": 5})
        False
    """
    if isinstance(subset, Mapping):
        if not isinstance(superset, Mapping):
            return False
        return all(
            key in superset and is_subset(superset[key], value)
            for key, value in subset.items()
        )

    if isinstance(subset, (list, tuple)):
        if not isinstance(superset, (list, tuple)) or len(subset) > len(superset):
            return False
        return all(is_subset(sup, sub) for sup, sub in zip(superset, subset))

    if isinstance(subset, bool) or isinstance(superset, bool):
        return superset is subset

    return bool(superset == subset)


def merge_metadata(target: Mapping[str, Any], source: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``source`` into a copy of ``target``.

    Nested mappings are merged recursively, anything else (including lists)
    from ``source`` replaces the value in ``target``. Neither argument is
    modified.

    Example:
        >>> merge_metadata({"a": 1, "b": 2, "c": 3}, {"a": 1, "b": 5})
        {'a': 1, 'b': 5, 'c': 3}
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(target))
    for key, value in source.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_metadata(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
