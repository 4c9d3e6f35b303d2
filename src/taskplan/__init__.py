"""taskplan: dependency-aware planning for Markdown task breakdowns."""

__version__ = "0.3.0"
