from __future__ import annotations

from blockevo.simulation.kinematic import KinematicSimulator

__all__ = ["KinematicSimulator"]
