"""End to end compilation of in-memory models."""

import json
import logging
from datetime import datetime, timezone

import pytest
import yaml

from hacodegen import GeneratorConfig, HomeAssistantGenerator, MissingRootError, compile_model
from hacodegen.model import ModelError

from model_builders import flat_model, initial, machine, state, transition

GENERATED_AT = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def door_model():
    return flat_model(
        machine("/d", "Door"),
        initial("/d/i"),
        state("/d/c", "Closed"),
        state("/d/o", "Open"),
        transition("/d/t0", "/d/i", "/d/c"),
        transition("/d/t1", "/d/c", "/d/o", event="open_event"),
    )


def test_door_example():
    compiled = compile_model(door_model())
    assert compiled.machine_id == "door"
    select = compiled.document['input_select']['door']
    assert select['options'] == ["closed_d_c", "open_d_o"]
    assert select['initial'] == "closed_d_c"
    assert compiled.rules == [{
        'conditions': [
            {'condition': 'state', 'entity_id': 'input_select.door', 'state': 'closed_d_c'},
            {'condition': 'template',
             'value_template': "{{ trigger.event.data.event == 'open_event' }}"},
        ],
        'sequence': [{
            'service': 'input_select.select_option',
            'target': {'entity_id': 'input_select.door'},
            'data': {'option': 'open_d_o'},
        }],
    }]


def test_compilation_is_repeatable():
    model = door_model()
    first = compile_model(model)
    second = compile_model(model)
    assert first.identifiers == second.identifiers
    assert first.document == second.document


def test_model_without_states(caplog):
    with caplog.at_level(logging.WARNING):
        compiled = compile_model(flat_model(machine("/e", "Empty")))
    select = compiled.document['input_select']['empty']
    assert select['options'] == []
    assert select['initial'] is None
    assert compiled.document['automation'][0]['action'] == [{'choose': []}]
    assert "No initial transition" in caplog.text


def test_initial_transition_into_non_state(caplog):
    model = flat_model(
        machine(), initial(), state("/m/a", "A"),
        transition("/m/t0", "/m/i", "/m/missing"),
    )
    with caplog.at_level(logging.WARNING):
        compiled = compile_model(model)
    assert compiled.initial is None
    assert "does not lead to a state" in caplog.text


def test_missing_root_raises():
    with pytest.raises(MissingRootError):
        compile_model(flat_model(state("/a", "A")))
    with pytest.raises(MissingRootError):
        HomeAssistantGenerator(flat_model(state("/a", "A"))).generate()


def test_unrecognised_model_raises():
    with pytest.raises(ModelError):
        compile_model({'something': 'else'})


def test_warnings_go_to_injected_logger(caplog):
    logger = logging.getLogger("plugin.logger")
    with caplog.at_level(logging.WARNING):
        compile_model(flat_model(machine()), logger=logger)
    assert {r.name for r in caplog.records} == {"plugin.logger"}


def test_artifacts():
    artifacts = HomeAssistantGenerator(door_model()).generate(GENERATED_AT)
    assert sorted(artifacts) == ["door.yaml", "door_model.json"]

    config = artifacts["door.yaml"]
    assert config.startswith(
        '#\n# Auto-generated Home Assistant configuration for "Door" state machine.\n'
        '# Generated by sm-compiler on 2026-01-02T03:04:05+00:00\n#\n\n'
    )
    assert yaml.safe_load(config) == compile_model(door_model()).document
    assert json.loads(artifacts["door_model.json"]) == door_model()


def test_yaml_has_no_aliases_or_wrapping():
    long_guard = "[" + " and ".join(f"states.sensor.s{i}.state | int > {i}" for i in range(20)) + "]"
    model = flat_model(
        machine(), state("/m/a", "A"), state("/m/b", "B"),
        {'type': 'Choice Pseudostate', 'path': '/m/c', 'attributes': {}},
        transition("/m/t1", "/m/a", "/m/c", event="go"),
        transition("/m/t2", "/m/b", "/m/c", event="go"),
        transition("/m/t3", "/m/c", "/m/b", guard=long_guard),
    )
    text = HomeAssistantGenerator(model).generate(GENERATED_AT)["machine.yaml"]
    assert "&id" not in text and "*id" not in text
    assert any(long_guard[1:-1] in line for line in text.splitlines())


def test_config_controls_artifacts():
    config = GeneratorConfig(file_prefix="ha_", include_debug_model=False, include_dot=True,
                             config_ext="yml", icon="mdi:door", mode="restart")
    artifacts = HomeAssistantGenerator(door_model(), config).generate(GENERATED_AT)
    assert sorted(artifacts) == ["ha_door.dot", "ha_door.yml"]
    doc = yaml.safe_load(artifacts["ha_door.yml"])
    assert doc['input_select']['door']['icon'] == "mdi:door"
    assert doc['automation'][0]['mode'] == "restart"


def test_tree_and_flat_shapes_compile_alike():
    closed = {'type': 'State', 'path': '/d/c', 'sanitizedName': 'Closed', 'attributes': {}}
    opened = {'type': 'State', 'path': '/d/o', 'sanitizedName': 'Open', 'attributes': {}}
    closed['ExternalEvents'] = [{'name': 'open_event', 'Transitions': [
        {'path': '/d/t1', 'dst': opened, 'attributes': {}, 'isExternalTransition': True}]}]
    init = {'type': 'Initial', 'path': '/d/i', 'attributes': {},
            'ExternalEvents': [{'name': '', 'Transitions': [{'path': '/d/t0', 'dst': closed}]}]}
    tree = {'root': {'type': 'State Machine', 'path': '/d', 'sanitizedName': 'Door',
                     'Initial_list': [init], 'State_list': [closed, opened]}}

    assert compile_model(tree).document == compile_model(door_model()).document
