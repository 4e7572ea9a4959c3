"""Resume builder backend: document model, validation, persistence and rendering."""
