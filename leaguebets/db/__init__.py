"""Database plumbing: engine factory, metadata and transaction helpers."""
