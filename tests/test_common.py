"""Identifier generation and the small output helpers."""

import logging

from hacodegen.common import (
    build_identifier_map,
    event_condition,
    machine_identifier,
    snake_name,
    state_identifier,
    strip_guard,
)
from hacodegen.model import Node, NodeKind


def make_state(path, name):
    return Node(kind=NodeKind.STATE, path=path, name=name)


def test_snake_name_collapses_separators():
    assert snake_name("  Door  Open!! now ") == "door_open_now"
    assert snake_name("/f/a1/B") == "f_a1_b"
    assert snake_name("") == ""
    assert snake_name(None) == ""


def test_state_identifier_is_name_then_path():
    assert state_identifier(make_state("/d/c", "Closed")) == "closed_d_c"


def test_state_identifier_without_name_is_path_only():
    assert state_identifier(make_state("/d/c", "")) == "d_c"


def test_same_name_different_paths_are_distinct():
    ids = build_identifier_map([make_state("/a/1", "Idle"), make_state("/b/1", "Idle")])
    assert ids == {"/a/1": "idle_a_1", "/b/1": "idle_b_1"}


def test_identifier_map_is_stable():
    states = [make_state("/x", "One"), make_state("/y", "Two")]
    assert build_identifier_map(states) == build_identifier_map(list(states))


def test_colliding_identifiers_get_suffix(caplog):
    # "a b" + "/c" and "a" + "/b/c" both normalise to a_b_c
    states = [make_state("/c", "a b"), make_state("/b/c", "a")]
    with caplog.at_level(logging.WARNING):
        ids = build_identifier_map(states)
    assert ids == {"/c": "a_b_c", "/b/c": "a_b_c_2"}
    assert len(set(ids.values())) == 2
    assert "already taken" in caplog.text


def test_machine_identifier_fallback():
    assert machine_identifier(Node(NodeKind.STATE_MACHINE, "/m", "Hall Lights")) == "hall_lights"
    assert machine_identifier(Node(NodeKind.STATE_MACHINE, "/m", "")) == "state_machine"


def test_strip_guard():
    assert strip_guard("[x > 1]") == "x > 1"
    assert strip_guard("  [ states('a') == 'on' ]  ") == "states('a') == 'on'"
    assert strip_guard("is_state('a', 'on')") == "is_state('a', 'on')"
    assert strip_guard("[[a]]") == "[a]"


def test_event_condition_escapes_quotes():
    cond = event_condition("it's")
    assert cond == {
        'condition': 'template',
        'value_template': "{{ trigger.event.data.event == 'it\\'s' }}",
    }
