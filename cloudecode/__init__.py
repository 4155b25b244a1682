"""
CloudDecode - structured explanations for shell and cloud CLI commands.
"""

__version__ = "0.1.0"
