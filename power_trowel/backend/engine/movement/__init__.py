from power_trowel.backend.engine.movement.movement import (
    HeldDirection,
    MoveGate,
    RepeatingMove,
    resolve_joystick,
)

__all__ = ["HeldDirection", "MoveGate", "RepeatingMove", "resolve_joystick"]
