"""Canonical representation of a state machine model.

Both input shapes are converted into these types by the indexer; the
resolver and the automation assembler only ever see a `ModelIndex`.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ModelError(Exception):
    """The model cannot be compiled at all."""


class MissingRootError(ModelError):
    pass


class NodeKind(Enum):
    STATE_MACHINE = "StateMachine"
    STATE = "State"
    END_STATE = "EndState"
    CHOICE = "ChoiceBranch"
    INITIAL = "InitialMarker"


class TransitionKind(Enum):
    EXTERNAL = "ExternalTransition"
    INTERNAL = "InternalTransition"
    INITIAL = "InitialTransition"


STATE_KINDS = (NodeKind.STATE, NodeKind.END_STATE)

# Keys are type names with case and non-letters removed.
NODE_TYPES = {
    'statemachine': NodeKind.STATE_MACHINE,
    'state': NodeKind.STATE,
    'endstate': NodeKind.END_STATE,
    'choice': NodeKind.CHOICE,
    'choicepseudostate': NodeKind.CHOICE,
    'choicebranch': NodeKind.CHOICE,
    'initial': NodeKind.INITIAL,
    'initialmarker': NodeKind.INITIAL,
    'initialpseudostate': NodeKind.INITIAL,
}

TRANSITION_TYPES = {
    'externaltransition': TransitionKind.EXTERNAL,
    'internaltransition': TransitionKind.INTERNAL,
    'initialtransition': TransitionKind.INITIAL,
}


def _type_key(type_name):
    return re.sub(r'[^a-z]', '', str(type_name or "").lower())


def node_kind(type_name) -> Optional[NodeKind]:
    return NODE_TYPES.get(_type_key(type_name))


def transition_kind(type_name) -> Optional[TransitionKind]:
    return TRANSITION_TYPES.get(_type_key(type_name))


def _attr(attributes, key):
    value = attributes.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass
class Node:
    kind: NodeKind
    path: str
    name: str = ""
    attributes: dict = field(default_factory=dict)

    def attr(self, key) -> Optional[str]:
        """Attribute text, or None when it is missing or blank."""
        return _attr(self.attributes, key)

    @property
    def is_state(self):
        return self.kind in STATE_KINDS


@dataclass
class Transition:
    kind: TransitionKind
    src: Optional[str]
    dst: Optional[str]
    attributes: dict = field(default_factory=dict)
    path: Optional[str] = None
    event_name: Optional[str] = None  # from the owning event group (tree shape)

    def attr(self, key) -> Optional[str]:
        return _attr(self.attributes, key)

    @property
    def event(self) -> Optional[str]:
        event = self.attr('Event')
        if event is None and self.event_name and self.event_name.strip():
            event = self.event_name
        return event.strip() if event else None

    def describe(self):
        return self.path or f"{self.src} -> {self.dst}"


class ModelIndex:
    """Flat, path keyed lookup table of nodes plus the transitions between them."""

    def __init__(self):
        self.nodes: dict[str, Node] = {}
        self.transitions: list[Transition] = []
        self._transition_keys = set()

    def add_node(self, node: Node) -> bool:
        if node.path in self.nodes:
            return False
        self.nodes[node.path] = node
        return True

    def add_transition(self, transition: Transition, key=None) -> bool:
        key = key if key is not None else (transition.path or id(transition))
        if key in self._transition_keys:
            return False
        self._transition_keys.add(key)
        self.transitions.append(transition)
        return True

    def get(self, path) -> Optional[Node]:
        if path is None:
            return None
        return self.nodes.get(path)

    @property
    def root(self) -> Optional[Node]:
        for node in self.nodes.values():
            if node.kind is NodeKind.STATE_MACHINE:
                return node
        return None

    def states(self) -> list[Node]:
        return [n for n in self.nodes.values() if n.is_state]

    def outgoing(self, path, kinds=None) -> list[Transition]:
        return [
            t for t in self.transitions
            if t.src == path and (kinds is None or t.kind in kinds)
        ]

    def initial_transition(self) -> Optional[Transition]:
        for t in self.transitions:
            if t.kind is TransitionKind.INITIAL:
                return t
        return None
