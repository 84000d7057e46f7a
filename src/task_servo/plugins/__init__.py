"""
Plugins package for robot- and simulator-specific adapters.
"""
