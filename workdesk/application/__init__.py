"""Application layer: services that orchestrate upstream calls for the API."""
