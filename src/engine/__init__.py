"""
Simulation engine: clock, update boundary, state machines, phase
simulator and hook sessions.
"""

from .timer_bridge import TimerBridge
from .update_boundary import BatchedUpdates, IUpdateBoundary
from .state_machine import AnimationStateMachine, StateMachine, create_test_state_machine
from .phase_simulator import PhaseSimulator, KeyframeTimeline, simulate_phases, wait_for_phase
from .hook_session import render_animation_hook

__all__ = [
    "TimerBridge",
    "BatchedUpdates",
    "IUpdateBoundary",
    "StateMachine",
    "AnimationStateMachine",
    "create_test_state_machine",
    "PhaseSimulator",
    "KeyframeTimeline",
    "simulate_phases",
    "wait_for_phase",
    "render_animation_hook",
]
