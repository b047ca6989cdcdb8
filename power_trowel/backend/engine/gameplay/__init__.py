from power_trowel.backend.engine.gameplay.game import LevelOutcome, Phase, RunController

__all__ = ["LevelOutcome", "Phase", "RunController"]
