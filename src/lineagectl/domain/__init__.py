"""Domain layer — identifier and payload contracts, error taxonomy.

This layer depends only on stdlib.
It must never import from infrastructure, services, commands, or config.
"""
