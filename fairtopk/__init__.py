"""Fair top-k ranking: datasets, quality measures, BSP-tree search and concurrent building blocks."""

__version__ = "0.1.0"