"""
Transition table export for diagrams (Graphviz DOT, Mermaid).

Reporting only; the parser never reads these outputs.
"""

from collections import defaultdict

from ..schemas import ParserState
from .transitions import TransitionTable


def _grouped_edges(table: TransitionTable) -> list[tuple[ParserState, ParserState, str]]:
    """Merge edges with the same endpoints and action into one labelled edge."""
    groups: dict[tuple[ParserState, ParserState, str], list[str]] = defaultdict(list)
    for (state, line_class), transition in table.items():
        groups[(state, transition.next_state, transition.action_name)].append(line_class.value)

    edges = []
    for (source, target, action), classes in groups.items():
        label = ", ".join(classes)
        if action != "noop":
            label = f"{label} / {action}"
        edges.append((source, target, label))
    order = {s: i for i, s in enumerate(ParserState)}
    edges.sort(key=lambda e: (order[e[0]], order[e[1]], e[2]))
    return edges


def to_dot(table: TransitionTable, name: str = "invoice_parser") -> str:
    """Render the table as a Graphviz digraph."""
    lines = [f"digraph {name} {{", "  rankdir=LR;", "  node [shape=circle];"]
    for state in table.states:
        if state.is_absorbing:
            lines.append(f"  {state.value} [shape=doublecircle];")
    lines.append(f"  start [shape=point]; start -> {ParserState.INIT.value};")
    for source, target, label in _grouped_edges(table):
        lines.append(f'  {source.value} -> {target.value} [label="{label}"];')
    lines.append("}")
    return "\n".join(lines) + "\n"


def to_mermaid(table: TransitionTable) -> str:
    """Render the table as a Mermaid state diagram."""
    lines = ["stateDiagram-v2", f"  [*] --> {ParserState.INIT.value}"]
    for source, target, label in _grouped_edges(table):
        lines.append(f"  {source.value} --> {target.value}: {label}")
    lines.append(f"  {ParserState.TERMINAL.value} --> [*]")
    return "\n".join(lines) + "\n"
