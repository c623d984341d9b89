"""graph.py
Thin property-graph layer over networkx.

Node and link attributes are declared with a type before the graph is
populated; every node or link then carries every declared attribute, set to
the type default until a value is given. This keeps the GraphML output
regular (all keys present on all elements).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Hashable

import networkx as nx

logger = logging.getLogger(__name__)

PROPERTY_DEFAULTS: dict[str, Any] = {
    "string": "NA",
    "int": 0,
    "float": 0.0,
}


class PropertyGraph:
    """A named, directed or undirected graph with typed node and link attributes."""

    def __init__(self, name: str, directed: bool) -> None:
        self.name = name
        self.directed = directed
        self.graph: nx.Graph = nx.DiGraph(name=name) if directed else nx.Graph(name=name)
        self.node_properties: dict[str, str] = {}
        self.link_properties: dict[str, str] = {}

    # ------------------------------------------------------------ schema

    def add_node_property(self, name: str, kind: str) -> None:
        if kind not in PROPERTY_DEFAULTS:
            raise ValueError(f"Unknown property type '{kind}' for node property '{name}'")
        self.node_properties[name] = kind

    def add_link_property(self, name: str, kind: str) -> None:
        if kind not in PROPERTY_DEFAULTS:
            raise ValueError(f"Unknown property type '{kind}' for link property '{name}'")
        self.link_properties[name] = kind

    # ------------------------------------------------------------- nodes

    def retrieve_node(self, name: Hashable) -> dict[str, Any]:
        """Return the attribute dict of node *name*, creating it with defaults."""
        if name not in self.graph:
            defaults = {prop: PROPERTY_DEFAULTS[kind] for prop, kind in self.node_properties.items()}
            self.graph.add_node(name, **defaults)
        return self.graph.nodes[name]

    def set_node_properties(self, name: Hashable, **values: Any) -> None:
        attrs = self.retrieve_node(name)
        for prop, value in values.items():
            if prop not in self.node_properties:
                raise KeyError(f"Undeclared node property '{prop}' in graph '{self.name}'")
            if value is not None:
                attrs[prop] = value

    # ------------------------------------------------------------- links

    def _endpoints(self, source: Hashable, target: Hashable) -> tuple[Hashable, Hashable]:
        if not self.directed and str(target) < str(source):
            return target, source
        return source, target

    def retrieve_link(self, source: Hashable, target: Hashable) -> dict[str, Any]:
        """Return the attribute dict of the link, creating it (and its ends) with defaults.

        For an undirected graph the endpoints are ordered, so that
        ``retrieve_link(a, b)`` and ``retrieve_link(b, a)`` give the same link.
        """
        source, target = self._endpoints(source, target)
        self.retrieve_node(source)
        self.retrieve_node(target)
        if not self.graph.has_edge(source, target):
            defaults = {prop: PROPERTY_DEFAULTS[kind] for prop, kind in self.link_properties.items()}
            self.graph.add_edge(source, target, **defaults)
        return self.graph.edges[source, target]

    def set_link_properties(self, source: Hashable, target: Hashable, **values: Any) -> None:
        attrs = self.retrieve_link(source, target)
        for prop, value in values.items():
            if prop not in self.link_properties:
                raise KeyError(f"Undeclared link property '{prop}' in graph '{self.name}'")
            attrs[prop] = value

    def increment_link_property(self, source: Hashable, target: Hashable, prop: str, step: float = 1) -> None:
        attrs = self.retrieve_link(source, target)
        if prop not in self.link_properties:
            raise KeyError(f"Undeclared link property '{prop}' in graph '{self.name}'")
        attrs[prop] += step

    # ------------------------------------------------------------ output

    @property
    def node_count(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def link_count(self) -> int:
        return self.graph.number_of_edges()

    def write_graphml(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        nx.write_graphml(self.graph, path, encoding="utf-8")
        logger.info(
            "Recorded graph '%s' (%d nodes, %d links) in %s",
            self.name,
            self.node_count,
            self.link_count,
            path,
        )

    def __repr__(self) -> str:
        kind = "directed" if self.directed else "undirected"
        return f"PropertyGraph({self.name!r}, {kind}, nodes={self.node_count}, links={self.link_count})"
