"""
API Routes for the optimizer web backend.
"""

from . import prompts

__all__ = ["prompts"]
