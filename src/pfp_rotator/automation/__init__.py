"""Profile page automation."""
from .finders import EDIT_BUTTON_STRATEGIES, find_profile_picture_edit_button
from .page_automator import AutomationTimings, PageAutomator

__all__ = [
    'EDIT_BUTTON_STRATEGIES',
    'AutomationTimings',
    'PageAutomator',
    'find_profile_picture_edit_button',
]
