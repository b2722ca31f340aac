"""vault-canvas: turn linked vault notes into canvas diagrams."""

__version__ = "0.1.0"
