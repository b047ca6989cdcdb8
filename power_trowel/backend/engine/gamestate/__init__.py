from power_trowel.backend.engine.gamestate.state import LevelState

__all__ = ["LevelState"]
