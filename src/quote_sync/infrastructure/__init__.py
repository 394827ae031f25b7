"""Cross-cutting infrastructure: clock abstraction and structured logging."""
