"""Turn either model export shape into a `ModelIndex`.

Flat shape::

    {"objects": {"/a": {"type": "State", "path": "/a", "sanitizedName": "Idle",
                        "attributes": {...}},
                 "/t": {"type": "External Transition", "path": "/t",
                        "pointers": {"src": "/a", "dst": "/b"}, "attributes": {...}}}}

Tree shape::

    {"root": {"type": "State Machine", "path": "/m", "childPaths": [...],
              "State_list": [{"type": "State", "path": "/m/a",
                              "ExternalEvents": [{"name": "go", "Transitions": [
                                  {"dst": <node record or path>, "attributes": {...},
                                   "isExternalTransition": true}]}],
                              "InternalEvents": [...]}]}}
"""

import logging
import re
from collections.abc import Mapping

from .model import (
    ModelError,
    MissingRootError,
    ModelIndex,
    Node,
    NodeKind,
    Transition,
    TransitionKind,
    node_kind,
    transition_kind,
)

_log = logging.getLogger(__name__)

CHILD_LIST_RE = re.compile(r'(_list|^children)$')

EVENT_GROUPS = (
    ('ExternalEvents', TransitionKind.EXTERNAL),
    ('InternalEvents', TransitionKind.INTERNAL),
)


def _lookup(model, key):
    if isinstance(model, Mapping):
        return model.get(key)
    return getattr(model, key, None)


def _ref_path(ref):
    if isinstance(ref, Mapping):
        return ref.get('path')
    if isinstance(ref, str) and ref:
        return ref
    return None


def _node_from_record(record, fallback_path, log):
    kind = node_kind(record.get('type'))
    if kind is None:
        return None
    path = record.get('path') or fallback_path
    if not path:
        log.warning("Skipping %s node without a path", kind.value)
        return None
    name = record.get('sanitizedName') or record.get('name') or ""
    attributes = record.get('attributes') or {}
    return Node(kind=kind, path=path, name=str(name), attributes=dict(attributes))


def _is_pointer_transition(record):
    return transition_kind(record.get('type')) is not None and 'pointers' in record


def _add_pointer_transition(index, record, fallback_path):
    pointers = record.get('pointers') or {}
    path = record.get('path') or fallback_path
    transition = Transition(
        kind=transition_kind(record.get('type')),
        src=_ref_path(pointers.get('src')),
        dst=_ref_path(pointers.get('dst')),
        attributes=dict(record.get('attributes') or {}),
        path=path,
    )
    if transition.kind is TransitionKind.INTERNAL and transition.dst is None:
        transition.dst = transition.src
    index.add_transition(transition, key=path or id(record))


def index_flat(objects, log=_log):
    """Index a flat path -> record mapping whose transitions carry `pointers`."""
    index = ModelIndex()
    pending = []
    for key, record in objects.items():
        if not isinstance(record, Mapping):
            continue
        if _is_pointer_transition(record):
            pending.append((key, record))
            continue
        node = _node_from_record(record, key, log)
        if node is None:
            log.debug("Ignoring record '%s' of type %r", key, record.get('type'))
            continue
        index.add_node(node)

    # Nodes first, so the order of `objects` never matters for transitions.
    for key, record in pending:
        _add_pointer_transition(index, record, key)
    return index


def _add_tree_transition(index, node, record, kind, event_name):
    if not isinstance(record, Mapping):
        return None
    if record.get('isExternalTransition') is False:
        kind = TransitionKind.INTERNAL
    dst_ref = record.get('dst')
    dst = node.path if kind is TransitionKind.INTERNAL else _ref_path(dst_ref)
    transition = Transition(
        kind=kind,
        src=node.path,
        dst=dst,
        attributes=dict(record.get('attributes') or {}),
        path=record.get('path'),
        event_name=event_name,
    )
    index.add_transition(transition, key=record.get('path') or id(record))
    return dst_ref if isinstance(dst_ref, Mapping) else None


def _tree_transitions(index, node, record):
    """Index the adjacency lists of one tree node; returns referenced dst records."""
    referenced = []
    for group_key, kind in EVENT_GROUPS:
        for group in record.get(group_key) or []:
            if not isinstance(group, Mapping):
                continue
            for t in group.get('Transitions') or []:
                referenced.append(_add_tree_transition(index, node, t, kind, group.get('name')))
    for t in record.get('ExternalTransitions') or []:
        referenced.append(_add_tree_transition(index, node, t, TransitionKind.EXTERNAL, None))
    return [r for r in referenced if r is not None]


def index_tree(root, log=_log):
    """Walk a nested model tree, visiting every record object once.

    Children come from any list property named `*_list` or `children`. Nodes
    that are only reachable through a transition's `dst` are visited after
    the child walk, so the state order follows the child lists.
    """
    index = ModelIndex()
    seen = set()
    stack = [root]
    referenced = []

    while stack or referenced:
        if not stack:
            stack.append(referenced.pop(0))
        record = stack.pop()
        if not isinstance(record, Mapping) or id(record) in seen:
            continue
        seen.add(id(record))

        if _is_pointer_transition(record):
            _add_pointer_transition(index, record, None)
            continue

        node = _node_from_record(record, None, log)
        if node is not None and index.add_node(node):
            referenced.extend(_tree_transitions(index, node, record))

        children = []
        for key, value in record.items():
            if isinstance(value, list) and CHILD_LIST_RE.search(key):
                children.extend(c for c in value if isinstance(c, Mapping))
        stack.extend(reversed(children))

    return index


def _classify_initial(index):
    for t in index.transitions:
        source = index.get(t.src)
        if source is not None and source.kind is NodeKind.INITIAL:
            t.kind = TransitionKind.INITIAL


def index_model(model, logger=None):
    """Build the canonical index for a model in either supported shape.

    Raises MissingRootError when the model has no state machine node.
    """
    log = logger or _log
    objects = _lookup(model, 'objects')
    if objects is not None:
        if not isinstance(objects, Mapping):
            raise ModelError("Model 'objects' must be a mapping of path -> record")
        index = index_flat(objects, log)
    else:
        root = _lookup(model, 'root')
        if not isinstance(root, Mapping):
            raise ModelError("Model has neither an 'objects' table nor a 'root' node")
        index = index_tree(root, log)

    if index.root is None:
        raise MissingRootError("No 'State Machine' node found in model")

    _classify_initial(index)
    log.debug("Indexed %d nodes and %d transitions", len(index.nodes), len(index.transitions))
    return index
