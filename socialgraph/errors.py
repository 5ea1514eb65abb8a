"""Error taxonomy shared by the model, analytics, filters and sources."""


class GraphError(Exception):
    """Base class for relationship graph errors."""


class NotFound(GraphError, LookupError):
    def __init__(self, person_id: str):
        super().__init__(f"Person not found: {person_id}")
        self.person_id = person_id


class EmptyGraph(GraphError):
    def __init__(self, operation: str = "analytics"):
        super().__init__(f"Cannot compute {operation} over an empty graph")
        self.operation = operation


class DanglingReference(GraphError):
    """An edge points at a person that is not part of the snapshot."""

    def __init__(self, source_id: str, target_id: str, missing_id: str):
        super().__init__(
            f"Relationship {source_id} -> {target_id} references unknown person {missing_id}"
        )
        self.source_id = source_id
        self.target_id = target_id
        self.missing_id = missing_id


class InvalidFilterRange(GraphError, ValueError):
    def __init__(self, name: str, low: int, high: int):
        super().__init__(f"Invalid {name} range: min {low} is greater than max {high}")
        self.name = name
        self.low = low
        self.high = high


class StaleResponse(GraphError):
    """A response arrived for a request that has since been superseded."""

    def __init__(self, channel: str, seq: int, latest: int):
        super().__init__(f"Discarding stale {channel} response #{seq} (latest is #{latest})")
        self.channel = channel
        self.seq = seq
        self.latest = latest


class SourceError(GraphError):
    """The relationship store failed or answered with an unexpected shape."""
