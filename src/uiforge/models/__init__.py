"""
Models package - generation collaborator configuration.
"""

from .config import GenerationConfig, GenerationSource, Provider

__all__ = [
    "GenerationConfig",
    "GenerationSource",
    "Provider",
]
