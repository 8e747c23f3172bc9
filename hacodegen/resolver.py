"""Expand a transition into the action sequence the automation runs when it fires.

Choice nodes on the way become nested `choose` actions. The set of choice
nodes already on the current path travels with each pending arm on an
explicit work stack, so a chain that loops back onto itself is cut off and a
very long chain never hits the interpreter recursion limit. Two arms that
meet again at the same choice node (a diamond) both resolve.
"""

import logging

from .actions import parse_actions
from .common import set_state_action, strip_guard, template_condition
from .model import NodeKind, STATE_KINDS, TransitionKind

_log = logging.getLogger(__name__)


class TransitionResolver:

    def __init__(self, index, identifiers, machine_id, logger=None):
        self.index = index
        self.identifiers = identifiers
        self.machine_id = machine_id
        self.log = logger or _log

    def resolve(self, transition):
        """Actions for `transition`: its Action, then the state change or choice tree."""
        sequence = []
        # Each entry fills one action list; choice arms push their own entries.
        pending = [(transition, frozenset(), sequence)]
        while pending:
            current, visited, out = pending.pop()
            pending.extend(reversed(self._expand(current, visited, out)))
        return sequence

    def _expand(self, transition, visited, out):
        """Fill `out` for one transition; returns the choice arms still to resolve."""
        where = f"transition '{transition.describe()}'"
        out.extend(parse_actions(transition.attr('Action'), self.log, where))

        target = self.index.get(transition.dst)
        if target is None:
            self.log.warning("Destination '%s' of %s not found in model, "
                             "no state change generated", transition.dst, where)
            return []

        if target.kind in STATE_KINDS:
            out.append(set_state_action(self.machine_id, self.identifiers[target.path]))
            out.extend(parse_actions(target.attr('Entry'), self.log,
                                     f"entry of '{target.path}'"))
        elif target.kind is NodeKind.CHOICE:
            if target.path in visited:
                self.log.warning("Choice cycle detected at '%s' (reached again from %s), "
                                 "resolution stopped", target.path, where)
                return []
            action, arms = self._choose(target, visited | {target.path})
            out.append(action)
            return arms
        else:
            self.log.warning("%s node '%s' targeted by %s cannot be entered",
                             target.kind.value, target.path, where)
        return []

    def _choose(self, choice, visited):
        outgoing = self.index.outgoing(choice.path, (TransitionKind.EXTERNAL,))
        if not outgoing:
            self.log.warning("Choice '%s' has no outgoing transitions", choice.path)

        guarded = [t for t in outgoing if t.attr('Guard')]
        defaults = [t for t in outgoing if not t.attr('Guard')]
        if len(defaults) > 1:
            self.log.warning("Choice '%s' has %d unguarded transitions, using '%s' as default",
                             choice.path, len(defaults), defaults[0].describe())

        action = {'choose': []}
        arms = []
        for branch in guarded:
            option = {
                'conditions': [template_condition(strip_guard(branch.attr('Guard')))],
                'sequence': [],
            }
            action['choose'].append(option)
            arms.append((branch, visited, option['sequence']))
        if defaults:
            action['default'] = []
            arms.append((defaults[0], visited, action['default']))
        return action, arms
