import logging
import re

_log = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r'[^a-z0-9]+')

SELECT_DOMAIN = "input_select"
SELECT_SERVICE = "input_select.select_option"


def snake_name(text):
    """Lower-case `text` and collapse every run of non [a-z0-9] characters to '_'."""
    if not text:
        return ""
    return _NON_ALNUM.sub("_", str(text).lower()).strip("_")


def state_identifier(node):
    """Stable id for a state: its display name followed by its model path.

    The path is unique inside a model, so two states named 'Idle' in
    different regions still get different ids.
    """
    parts = [p for p in (snake_name(node.name), snake_name(node.path)) if p]
    return "_".join(parts)


def build_identifier_map(states, logger=None):
    """Map state path -> identifier, keeping identifiers unique."""
    log = logger or _log
    identifiers = {}
    taken = set()
    for state in states:
        base = state_identifier(state)
        candidate = base
        n = 2
        while candidate in taken:
            candidate = f"{base}_{n}"
            n += 1
        if candidate != base:
            log.warning("State id '%s' of '%s' is already taken, using '%s'",
                        base, state.path, candidate)
        taken.add(candidate)
        identifiers[state.path] = candidate
    return identifiers


def machine_identifier(node):
    return snake_name(node.name) or "state_machine"


def entity_id(machine_id):
    return f"{SELECT_DOMAIN}.{machine_id}"


def event_type(machine_id):
    return f"{machine_id}_event"


def strip_guard(guard):
    """'[x > 1]' -> 'x > 1'. Only one bracket is removed at each end."""
    text = guard.strip()
    if text.startswith("["):
        text = text[1:]
    if text.endswith("]"):
        text = text[:-1]
    return text.strip()


def template_condition(expression):
    return {'condition': 'template', 'value_template': f"{{{{ {expression} }}}}"}


def event_condition(event_name):
    quoted = event_name.replace("\\", "\\\\").replace("'", "\\'")
    return template_condition(f"trigger.event.data.event == '{quoted}'")


def state_condition(machine_id, state_id):
    return {'condition': 'state', 'entity_id': entity_id(machine_id), 'state': state_id}


def set_state_action(machine_id, state_id):
    return {
        'service': SELECT_SERVICE,
        'target': {'entity_id': entity_id(machine_id)},
        'data': {'option': state_id},
    }


def get_graph_id(path):
    safe_id = re.sub(r'[^a-zA-Z0-9_]', '_', path or "")
    return "n" + safe_id
