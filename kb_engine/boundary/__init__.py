"""Boundary adapters: database, vector store, ledger, object storage, queue."""
