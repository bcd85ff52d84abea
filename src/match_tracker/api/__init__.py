"""FastAPI service holding the canonical match event log."""
