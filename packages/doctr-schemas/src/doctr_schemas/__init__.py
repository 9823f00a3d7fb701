"""doctr-schemas: Pydantic models shared across doctr packages."""
