from .contracts import EventBus
from .node_registry import NodeRegistryPort

__all__ = ["EventBus", "NodeRegistryPort"]
