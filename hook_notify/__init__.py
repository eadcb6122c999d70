"""
hook-notify - push notifications for Claude Code hook events
"""
__version__ = "0.3.0"
