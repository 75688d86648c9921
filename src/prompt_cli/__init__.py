"""
Command-line interface for the Hanzi prompt optimizer.

Optimize prompts from the terminal, answer clarification questions
interactively and forward optimized prompts to the response model.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
