"""Compile a state machine model into a Home Assistant package.

`compile_model` is the pure part: model in, configuration document out.
`HomeAssistantGenerator` turns the result into named file contents.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import yaml

from .automation import build_document, build_rules
from .common import build_identifier_map, machine_identifier
from .config import GeneratorConfig
from .debug_dump import dump_model
from .dot import generate_dot
from .indexer import index_model
from .model import ModelIndex
from .resolver import TransitionResolver

_log = logging.getLogger(__name__)


class _NoAliasDumper(yaml.SafeDumper):
    """Never emit anchors/aliases, even for repeated action records."""

    def ignore_aliases(self, data):
        return True


@dataclass
class CompiledMachine:
    name: str
    machine_id: str
    index: ModelIndex
    identifiers: dict
    initial: Optional[str]
    rules: list
    document: dict


def find_initial_state(index, identifiers, logger=None):
    log = logger or _log
    initial = index.initial_transition()
    if initial is None:
        log.warning("No initial transition found, the state selector gets no initial value")
        return None
    target = index.get(initial.dst)
    if target is None or not target.is_state:
        log.warning("Initial transition '%s' does not lead to a state, "
                    "the state selector gets no initial value", initial.describe())
        return None
    return identifiers[target.path]


def compile_model(model, config=None, logger=None):
    """Compile `model` (either export shape) into a `CompiledMachine`.

    Raises MissingRootError / ModelError when the model has no state machine;
    every other problem is logged and compiled around.
    """
    config = config or GeneratorConfig()
    log = logger or _log

    index = index_model(model, log)
    root = index.root
    machine_id = machine_identifier(root)

    states = index.states()
    identifiers = build_identifier_map(states, log)
    initial = find_initial_state(index, identifiers, log)

    resolver = TransitionResolver(index, identifiers, machine_id, log)
    rules = build_rules(index, identifiers, resolver, machine_id, log)
    log.info("Compiled '%s': %d states, %d rules", root.name, len(states), len(rules))

    document = build_document(
        root.name, machine_id,
        options=[identifiers[s.path] for s in states],
        initial=initial,
        rules=rules,
        icon=config.icon,
        mode=config.mode,
    )
    return CompiledMachine(
        name=root.name,
        machine_id=machine_id,
        index=index,
        identifiers=identifiers,
        initial=initial,
        rules=rules,
        document=document,
    )


def render_yaml(document):
    return yaml.dump(
        document,
        Dumper=_NoAliasDumper,
        indent=2,
        width=float("inf"),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def file_header(name, generated_at):
    return (f"#\n# Auto-generated Home Assistant configuration for \"{name}\" state machine.\n"
            f"# Generated by sm-compiler on {generated_at.isoformat()}\n#\n\n")


class HomeAssistantGenerator:
    """Produces the artifacts for one model: config YAML, debug dump, diagram."""

    def __init__(self, model, config=None, logger=None):
        self.model = model
        self.config = config or GeneratorConfig()
        self.log = logger or _log

    def generate(self, generated_at=None):
        """Compile and return {file name: content}."""
        compiled = compile_model(self.model, self.config, self.log)
        return self.assemble_output(compiled, generated_at or datetime.now(timezone.utc))

    def assemble_output(self, compiled, generated_at):
        prefix = self.config.file_prefix
        base = f"{prefix}{compiled.machine_id}"
        artifacts = {
            f"{base}.{self.config.config_ext}":
                file_header(compiled.name, generated_at) + render_yaml(compiled.document),
        }
        if self.config.include_debug_model:
            self.log.info("Saving input model as %s for debugging", self.config.debug_ext.upper())
            artifacts[f"{base}_model.{self.config.debug_ext}"] = dump_model(self.model)
        if self.config.include_dot:
            artifacts[f"{base}.dot"] = generate_dot(compiled.index, compiled.identifiers)
        return artifacts
