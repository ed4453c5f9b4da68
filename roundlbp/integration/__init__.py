"""
Integration shell: configuration loading, command dispatch, snapshots and
event-log projections around the core engine.
"""

from .commands import CommandResult, apply_command, apply_commands
from .config import load_engine_params, load_params, params_from_env, params_from_mapping
from .projection import project_pool_states, project_position_balances, project_reward_balances, project_rounds
from .snapshot import EngineSnapshot, snapshot_from_engine

__all__ = [
    "CommandResult",
    "apply_command",
    "apply_commands",
    "load_engine_params",
    "load_params",
    "params_from_env",
    "params_from_mapping",
    "project_pool_states",
    "project_position_balances",
    "project_reward_balances",
    "project_rounds",
    "EngineSnapshot",
    "snapshot_from_engine",
]
