"""Profile picture rotation: variation generation, storage, scheduling and page automation."""

__version__ = "0.1.0"
