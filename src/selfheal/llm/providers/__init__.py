"""
Model provider implementations.

Each module registers a ProviderProfile with ProviderRegistry on import;
selfheal.llm.factory imports them all.
"""
