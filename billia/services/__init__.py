"""Service layer: reconciliation, recurring billing, LLM helpers and exports."""
