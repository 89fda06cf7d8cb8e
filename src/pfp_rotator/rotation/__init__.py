"""Rotation settings, command messages and the scheduler."""
from .commands import (
    Ack,
    Command,
    CommandRouter,
    ForceUpdate,
    GenerateFromBase,
    GenerateImages,
    GetSettings,
    UpdateProfilePicture,
    UpdateSettings,
    parse_command,
)
from .scheduler import RotationScheduler, SchedulerState, TickResult, TickStatus
from .settings import Frequency, Settings, SettingsStore

__all__ = [
    'Ack',
    'Command',
    'CommandRouter',
    'ForceUpdate',
    'Frequency',
    'GenerateFromBase',
    'GenerateImages',
    'GetSettings',
    'RotationScheduler',
    'SchedulerState',
    'Settings',
    'SettingsStore',
    'TickResult',
    'TickStatus',
    'UpdateProfilePicture',
    'UpdateSettings',
    'parse_command',
]
