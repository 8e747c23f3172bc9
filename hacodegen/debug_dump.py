"""Cycle-safe dump of the raw input model, for debugging exports."""

import json
from collections.abc import Mapping
from enum import Enum

# Stands in for a container that was already serialized once.
ELIDED = object()


def strip_cycles(obj):
    """Copy `obj` into plain dicts/lists, serializing each container only once.

    The first time a dict, list or object is met it is copied in full. Any
    later reference to the same object (a back-reference in a cycle, or a
    node re-exposed through a second link) is left out: dropped from a dict,
    replaced by None inside a list.
    """
    seen = set()

    def walk(value):
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if id(value) in seen:
            return ELIDED
        seen.add(id(value))

        if isinstance(value, Mapping):
            items = value.items()
        elif isinstance(value, (list, tuple, set, frozenset)):
            out = []
            for item in value:
                item = walk(item)
                out.append(None if item is ELIDED else item)
            return out
        elif hasattr(value, '__dict__'):
            items = ((k, v) for k, v in vars(value).items() if not k.startswith('_'))
        else:
            return str(value)

        out = {}
        for key, item in items:
            item = walk(item)
            if item is not ELIDED:
                out[str(key)] = item
        return out

    result = walk(obj)
    return None if result is ELIDED else result


def dump_model(model, indent=2):
    return json.dumps(strip_cycles(model), indent=indent, ensure_ascii=False)
