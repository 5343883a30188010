"""Application layer: service orchestration over core logic and boundary adapters."""
