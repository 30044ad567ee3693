"""
Settings schemas - Pydantic models for harness configuration
"""

from typing import Dict

from pydantic import BaseModel, Field


class ClockSettings(BaseModel):
    """Timer bridge settings"""
    frame_interval_ms: float = Field(16.0, gt=0, description="Animation-frame spacing (~60fps)")
    run_all_limit: int = Field(
        1000,
        ge=1,
        description="Callback budget for the opt-in non-snapshot drain before it fails"
    )


class SimulatorSettings(BaseModel):
    """Phase simulator settings"""
    default_steps: int = Field(10, ge=1, description="Sampling intervals per iteration when a config omits steps")


class TeardownSettings(BaseModel):
    """Scenario teardown checks"""
    fail_on_pending_work: bool = Field(True, description="Raise PendingWorkLeak if callbacks remain scheduled")
    fail_on_unwrapped_updates: bool = Field(
        False,
        description="Raise PendingWorkLeak if state updates ran outside a batch"
    )


class HarnessSettings(BaseModel):
    """Complete harness configuration"""
    log_level: str = Field("WARN", description="DEBUG, INFO, WARN or ERROR")
    use_colors: bool = Field(False, description="ANSI colors in log output")
    clock: ClockSettings = Field(default_factory=ClockSettings)
    simulator: SimulatorSettings = Field(default_factory=SimulatorSettings)
    teardown: TeardownSettings = Field(default_factory=TeardownSettings)
    style_presets: Dict[str, Dict[str, str]] = Field(
        default_factory=dict,
        description="Selector → style property bag, applied on demand per scenario"
    )
