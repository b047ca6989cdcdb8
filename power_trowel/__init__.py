"""Power Trowel — finish the concrete slab before it dries."""

__version__ = "0.1.0"
