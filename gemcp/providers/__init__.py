"""
gemcp providers module.

This module provides the model API abstraction and the Gemini backend.
"""

from gemcp.providers.base import (
    Candidate,
    FunctionCall,
    ModelProvider,
    ModelResponse,
    Part,
    Turn,
)

__all__ = ["Candidate", "FunctionCall", "ModelProvider", "ModelResponse", "Part", "Turn"]
