"""
Custom exception hierarchy for the lineage engine.

All lineage errors inherit from LineageError so they can be caught
uniformly by whatever service layer wraps the engine.
"""


class LineageError(Exception):
    """Base exception for all lineage errors."""

    def __init__(self, message: str, component: str = "unknown"):
        self.component = component
        super().__init__(f"[{component}] {message}")


class NodeNotFoundError(LineageError):
    """The starting identifier does not resolve to any vertex."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"No vertex found for node id '{node_id}'", component="graph_store")


class LineageCycleError(LineageError):
    """A traversal could not reach a terminal vertex because of a cycle."""

    def __init__(self, resolver: str, node_id: str, detail: str = ""):
        self.resolver = resolver
        self.node_id = node_id
        message = f"Cycle detected while resolving {resolver} lineage of '{node_id}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, component="cycle_guard")


class TraversalTimeoutError(LineageError):
    """The caller's deadline elapsed or the query was cancelled."""

    def __init__(self, message: str, cancelled: bool = False):
        self.cancelled = cancelled
        super().__init__(message, component="deadline")


class InvalidViewError(LineageError):
    """The requested view cannot be turned into a set of edge labels."""

    def __init__(self, message: str):
        super().__init__(message, component="view")


class GraphStoreError(LineageError):
    """The underlying graph store failed to answer a read."""

    def __init__(self, message: str):
        super().__init__(message, component="graph_store")


class DatabaseConnectionError(GraphStoreError):
    """Failed to connect to Neo4j."""
    pass
