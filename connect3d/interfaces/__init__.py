"""
connect3d.interfaces - User interfaces for 3D Connect Four

This package contains the command-line interface.
"""

# Don't import anything here to avoid circular imports
__all__ = []
