"""Configuration, config sources and structured logging."""
