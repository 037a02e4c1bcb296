"""
gemcp Provider Base - Abstract base class for model providers.

This module defines the conversation and response shapes exchanged with a
function-calling model, and the interface every model provider implements.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FunctionCall(BaseModel):
    """A tool invocation requested by the model."""

    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class Part(BaseModel):
    """One piece of a turn: plain text or a function call."""

    text: Optional[str] = None
    function_call: Optional[FunctionCall] = None

    def to_content(self) -> Dict[str, Any]:
        # outgoing turns are always text; function calls only arrive in responses
        return {"text": self.text or ""}


class Turn(BaseModel):
    """A role-tagged message sent to or received from the model."""

    role: str  # "user" or "model"
    parts: List[Part] = Field(default_factory=list)

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(role="user", parts=[Part(text=text)])

    @classmethod
    def model(cls, text: str) -> "Turn":
        return cls(role="model", parts=[Part(text=text)])

    def to_content(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [part.to_content() for part in self.parts]}


class Candidate(BaseModel):
    parts: List[Part] = Field(default_factory=list)


class ModelResponse(BaseModel):
    """Provider-neutral view of a ``generateContent`` response."""

    candidates: List[Candidate] = Field(default_factory=list)

    @property
    def first_candidate(self) -> Optional[Candidate]:
        return self.candidates[0] if self.candidates else None


class ModelProvider(ABC):
    """
    Abstract base class for function-calling model providers.

    Example:
        >>> class EchoProvider(ModelProvider):
        ...     provider_name = "echo"
        ...     async def generate(self, contents, tools=None, system_instruction=None):
        ...         return ModelResponse(candidates=[Candidate(parts=contents[-1].parts)])
    """

    provider_name: str = ""

    def __init__(self, model: str = ""):
        self.model = model

    @abstractmethod
    async def generate(
        self,
        contents: List[Turn],
        tools: Optional[List[Dict[str, Any]]] = None,
        system_instruction: Optional[str] = None,
    ) -> ModelResponse:
        """
        Run one model turn.

        Args:
            contents: The conversation so far, oldest first.
            tools: Function declarations the model may call, or None.
            system_instruction: Optional system prompt.

        Returns:
            ModelResponse with the model's candidates.
        """
        pass
