"""doctr CLI package."""
