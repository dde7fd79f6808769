"""
Transition table of the purification round.

The legal step transitions are held in a directed graph. The engine
consults it before every transition, so a handler can never run from a
step it does not expect.
"""

from __future__ import annotations

from typing import List

import networkx as nx

from purisim.core.types import PurificationStep
from purisim.errors import ProtocolStateError


def build_protocol_graph() -> nx.DiGraph:
    """Directed graph of allowed step transitions, labelled by action."""
    S = PurificationStep
    graph = nx.DiGraph()
    graph.add_nodes_from(S)
    graph.add_edge(S.INITIAL, S.TWIRLED, action="twirl")
    graph.add_edge(S.TWIRLED, S.EXCHANGED, action="exchange")
    graph.add_edge(S.EXCHANGED, S.CNOT, action="bilateral-cnot")
    graph.add_edge(S.EXCHANGED, S.COMPLETED, action="too-few-pairs")
    graph.add_edge(S.CNOT, S.MEASURED, action="measure")
    graph.add_edge(S.MEASURED, S.DISCARD, action="discard")
    graph.add_edge(S.DISCARD, S.INITIAL, action="next-round")
    graph.add_edge(S.DISCARD, S.COMPLETED, action="terminate")
    return graph


PROTOCOL_GRAPH = build_protocol_graph()


def allowed_next_steps(step: PurificationStep) -> List[PurificationStep]:
    return list(PROTOCOL_GRAPH.successors(step))


def is_terminal(step: PurificationStep) -> bool:
    return PROTOCOL_GRAPH.out_degree(step) == 0


def require_transition(current: PurificationStep, target: PurificationStep) -> None:
    """Raise ProtocolStateError unless ``current -> target`` is an edge."""
    if not PROTOCOL_GRAPH.has_edge(current, target):
        raise ProtocolStateError(
            f"Illegal transition {current.value} -> {target.value}; "
            f"allowed: {[s.value for s in allowed_next_steps(current)]}"
        )


def round_sequence() -> List[PurificationStep]:
    """Steps of one full round, from INITIAL to DISCARD."""
    return nx.shortest_path(PROTOCOL_GRAPH, PurificationStep.INITIAL, PurificationStep.DISCARD)
