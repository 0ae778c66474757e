"""SelfHeal command-line interface."""
