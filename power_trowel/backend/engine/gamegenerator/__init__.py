from power_trowel.backend.engine.gamegenerator.generator import SlabGenerator

__all__ = ["SlabGenerator"]
