"""Service layer: all domain logic lives here; routes only call into it."""
