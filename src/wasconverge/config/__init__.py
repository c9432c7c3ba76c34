"""Topology inventory loaded from YAML."""
from .inventory import TopologyInventory

__all__ = ["TopologyInventory"]
