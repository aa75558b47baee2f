"""Application core: event bus and the Guardian that wires every component."""
