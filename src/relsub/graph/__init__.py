"""
Graph Module - per-view relationship registries.
"""

from relsub.graph.registry import DEFAULT_IS_A_TYPE_ID, GraphRegistry

__all__ = ["DEFAULT_IS_A_TYPE_ID", "GraphRegistry"]
