"""
Pod Persistence module.

This module contains the registry implementation backing the PodRepository
interface. Records are held in memory for the lifetime of the process.
"""

from .memory_repository import InMemoryPodRepository

__all__ = ["InMemoryPodRepository"]
