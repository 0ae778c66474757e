"""Small helpers shared across the LLM and self-healing packages."""
