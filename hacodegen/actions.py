import logging

import yaml

_log = logging.getLogger(__name__)


def parse_actions(fragment, logger=None, where=None):
    """Parse an Entry/Exit/Action fragment into a list of action records.

    The fragment is YAML holding either one action mapping or a list of them.
    Anything that is not usable is logged and treated as "no actions"; this
    function never raises.
    """
    log = logger or _log
    if fragment is None:
        return []
    if not isinstance(fragment, str):
        log.warning("Action fragment%s is not text (%s), ignoring it",
                    _location(where), type(fragment).__name__)
        return []
    if not fragment.strip():
        return []

    try:
        parsed = yaml.safe_load(fragment)
    except yaml.YAMLError as e:
        log.warning("Could not parse action fragment%s: %s. Content: %r",
                    _location(where), e, fragment)
        return []

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return [parsed]
    if parsed is None:
        # Only comments / document markers.
        return []
    log.warning("Action fragment%s parsed to a %s, not an action or list of actions: %r",
                _location(where), type(parsed).__name__, fragment)
    return []


def _location(where):
    return f" in {where}" if where else ""
