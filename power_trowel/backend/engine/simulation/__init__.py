from power_trowel.backend.engine.simulation.simulation import Simulation, SlabStats, round_half_up

__all__ = ["Simulation", "SlabStats", "round_half_up"]
