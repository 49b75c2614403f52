"""GUI-agnostic core: document model, loading, resolution and writing."""
