"""Graphviz diagram of an indexed state machine model."""

from .common import get_graph_id
from .model import NodeKind, TransitionKind

NODE_STYLES = {
    NodeKind.STATE: 'shape=box, style="rounded,filled", fillcolor=white',
    NodeKind.END_STATE: 'shape=doubleoctagon, style=filled, fillcolor=white',
    NodeKind.CHOICE: 'shape=diamond, style=filled, fillcolor=lightyellow',
    NodeKind.INITIAL: 'shape=point, width=0.15',
}


def _escape(text):
    return str(text).replace('\\', '\\\\').replace('"', '\\"')


def edge_label(transition):
    label_parts = []
    if transition.event:
        label_parts.append(transition.event)
    guard = transition.attr('Guard')
    if guard:
        guard = guard.strip()
        if not guard.startswith('['):
            guard = f"[{guard}]"
        label_parts.append(guard)
    action = transition.attr('Action')
    if action:
        # Show abbreviated action if too long
        act_text = action.strip().replace('\n', '; ')
        if len(act_text) > 15:
            act_text = act_text[:12] + "..."
        label_parts.append(f"/ {act_text}")
    return " ".join(label_parts)


def generate_dot(index, identifiers=None):
    """Graphviz rendering of the indexed model (states, choices, initial markers)."""
    identifiers = identifiers or {}
    root = index.root
    title = root.name if root is not None else "StateMachine"

    node_lines = []
    edge_lines = []
    for node in index.nodes.values():
        style = NODE_STYLES.get(node.kind)
        if style is None:
            continue
        if node.kind is NodeKind.CHOICE:
            label = "?"
        elif node.kind is NodeKind.INITIAL:
            label = ""
        else:
            label = node.name or identifiers.get(node.path, node.path)
        tooltip = identifiers.get(node.path, node.path)
        node_lines.append(f'    {get_graph_id(node.path)} [label="{_escape(label)}", '
                          f'tooltip="{_escape(tooltip)}", {style}];')

    for t in index.transitions:
        if index.get(t.src) is None or index.get(t.dst) is None:
            continue
        attrs = [f'label="{_escape(edge_label(t))}"', 'fontsize=10']
        if t.kind is TransitionKind.INTERNAL:
            attrs.append('style=dashed')
        edge_lines.append(f"    {get_graph_id(t.src)} -> {get_graph_id(t.dst)} [{', '.join(attrs)}];")

    lines = ["digraph StateMachine {",
             f'    label="{_escape(title)}"; fontname="Arial"; node [fontname="Arial"]; edge [fontname="Arial"];']
    lines.append("    // --- States ---")
    lines.extend(node_lines)
    lines.append("    // --- Transitions ---")
    lines.extend(edge_lines)
    lines.append("}")
    return "\n".join(lines)
