from __future__ import annotations

from typing import Any, Dict

from .base import Analyzer
from .http import post_json


def generate_content_url(base_url: str, model: str) -> str:
    # The API key travels in the x-goog-api-key header, never in the URL.
    base = base_url.rstrip("/")
    if base.endswith("/v1beta"):
        return f"{base}/models/{model}:generateContent"
    return f"{base}/v1beta/models/{model}:generateContent"


class GeminiAnalyzer(Analyzer):
    """Gemini generateContent with an inline image and responseMimeType=application/json.

    Expected answer: candidates[0].content.parts[0].text holding the JSON object.
    """

    def _call(self, image_b64: str, prompt: str, mime_type: str) -> Dict[str, Any]:
        url = generate_content_url(self.descriptor.endpoint_url, self.descriptor.model_id)
        headers = {"x-goog-api-key": self._api_key()}
        payload: Dict[str, Any] = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": image_b64}},
                    ]
                }
            ],
            "generationConfig": {"response_mime_type": "application/json"},
        }
        return post_json(self.provider_id, url, payload, headers=headers, timeout_seconds=self.timeout_seconds)
