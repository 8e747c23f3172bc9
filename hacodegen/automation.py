"""Assemble the per-state rules and the Home Assistant configuration document."""

import logging

from .actions import parse_actions
from .common import entity_id, event_condition, event_type, state_condition
from .model import TransitionKind

_log = logging.getLogger(__name__)

DEFAULT_ICON = "mdi:state-machine"
DEFAULT_MODE = "single"


def build_rules(index, identifiers, resolver, machine_id, logger=None):
    """One rule per (state, event) transition: conditions on state and event, then actions.

    Order follows the state order of the index, then each state's transitions.
    Rules that would run no actions at all are left out.
    """
    log = logger or _log
    rules = []
    for state in index.states():
        state_id = identifiers[state.path]
        for t in index.outgoing(state.path):
            event = t.event
            if not event:
                continue

            if t.kind is TransitionKind.EXTERNAL:
                sequence = parse_actions(state.attr('Exit'), log, f"exit of '{state.path}'")
                sequence.extend(resolver.resolve(t))
            elif t.kind is TransitionKind.INTERNAL:
                sequence = parse_actions(t.attr('Action'), log,
                                         f"transition '{t.describe()}'")
            else:
                continue

            if not sequence:
                log.debug("Dropping rule %s/%s: no actions", state_id, event)
                continue

            rules.append({
                'conditions': [
                    state_condition(machine_id, state_id),
                    event_condition(event),
                ],
                'sequence': sequence,
            })
    return rules


def build_document(name, machine_id, options, initial, rules,
                   icon=DEFAULT_ICON, mode=DEFAULT_MODE):
    """The `input_select` holding the current state plus the automation driving it."""
    return {
        'input_select': {
            machine_id: {
                'name': name,
                'options': list(options),
                'initial': initial,
                'icon': icon,
            },
        },
        'automation': [{
            'id': f"{machine_id}_automation",
            'alias': f"State Machine: {name}",
            'description': f"Handles state transitions for {name} "
                           f"(state kept in {entity_id(machine_id)})",
            'mode': mode,
            'trigger': [{'platform': 'event', 'event_type': event_type(machine_id)}],
            'action': [{'choose': rules}],
        }],
    }
