"""
vibemate.cli - Command line interface.
"""
