"""Session model, execution state machine and pure helpers."""
