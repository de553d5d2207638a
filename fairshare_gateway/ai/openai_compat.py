from __future__ import annotations

from typing import Any, Dict

from .base import Analyzer
from .http import post_json
from .prompt import RAW_JSON_SUFFIX


class OpenAICompatAnalyzer(Analyzer):
    """Chat-completions providers (OpenAI, DeepSeek, xAI Grok).

    The image travels as a base64 data URI in an `image_url` content part and
    the answer is read from choices[0].message.content.
    """

    def _call(self, image_b64: str, prompt: str, mime_type: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.descriptor.model_id,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt + RAW_JSON_SUFFIX},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
                    ],
                }
            ],
            "response_format": {"type": "json_object"},
        }
        headers = {"Authorization": f"Bearer {self._api_key()}"}
        return post_json(
            self.provider_id,
            self.descriptor.endpoint_url,
            payload,
            headers=headers,
            timeout_seconds=self.timeout_seconds,
        )
