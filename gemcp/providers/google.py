"""Google Gemini provider built on the ``google-generativeai`` SDK."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List, Optional

import google.generativeai as genai

from gemcp.providers.base import Candidate, FunctionCall, ModelProvider, ModelResponse, Part, Turn

logger = logging.getLogger(__name__)


class GoogleProvider(ModelProvider):
    """Gemini function-calling provider."""

    provider_name = "google"

    def __init__(self, model: str, api_key: Optional[str] = None):
        super().__init__(model)
        if not api_key:
            raise ValueError("Google API key not configured (set GOOGLE_API_KEY)")
        genai.configure(api_key=api_key)

    async def generate(
        self,
        contents: List[Turn],
        tools: Optional[List[Dict[str, Any]]] = None,
        system_instruction: Optional[str] = None,
    ) -> ModelResponse:
        """Generate a response using the Gemini API."""
        model = genai.GenerativeModel(
            self.model.split("/")[-1],  # Remove provider prefix if present
            system_instruction=system_instruction or None,
        )

        gemini_tools = [{"function_declarations": tools}] if tools else None
        logger.debug(
            "Gemini request: model=%s turns=%d functions=%d",
            self.model, len(contents), len(tools or []),
        )

        response = await model.generate_content_async(
            [turn.to_content() for turn in contents],
            tools=gemini_tools,
        )
        return convert_response(response)


def convert_response(response: Any) -> ModelResponse:
    """Convert an SDK ``GenerateContentResponse`` into a :class:`ModelResponse`."""
    candidates: List[Candidate] = []
    for raw_candidate in getattr(response, "candidates", None) or []:
        content = getattr(raw_candidate, "content", None)
        parts: List[Part] = []
        for raw_part in getattr(content, "parts", None) or []:
            part = _convert_part(raw_part)
            if part is not None:
                parts.append(part)
        candidates.append(Candidate(parts=parts))
    return ModelResponse(candidates=candidates)


def _convert_part(raw_part: Any) -> Optional[Part]:
    # proto-plus returns an empty FunctionCall when the field is unset
    function_call = getattr(raw_part, "function_call", None)
    if function_call is not None and getattr(function_call, "name", ""):
        args = _to_plain(getattr(function_call, "args", None) or {})
        return Part(function_call=FunctionCall(name=function_call.name, args=args))

    text = getattr(raw_part, "text", "")
    if text:
        return Part(text=text)
    return None


def _to_plain(value: Any) -> Any:
    """Turn proto map/repeated composites into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return [_to_plain(item) for item in value]
    return value
