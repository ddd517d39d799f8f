from typing import Any, Optional

from google import genai
from google.genai import types

from .base import AuditOracle


class GeminiOracle(AuditOracle):
    """Google Gemini audit engine."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash"):
        self.client = genai.Client(api_key=api_key)
        self.model_name = model

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        response_schema: Optional[dict[str, Any]] = None,
    ) -> str:
        """Send a prompt to Gemini and return the response text."""
        if response_schema is not None:
            config = types.GenerateContentConfig(
                system_instruction=system_instruction,
                response_mime_type="application/json",
                response_schema=response_schema,
                temperature=0.1,
            )
        else:
            config = types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=0.1,
            )

        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=config,
        )
        return response.text or ""
