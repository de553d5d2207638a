from __future__ import annotations

import base64
from typing import Any, Dict

from fairshare_gateway.errors import MalformedProviderResponse, ProviderNotConfigured
from fairshare_gateway.models import BillExtractionResult, ProviderDescriptor

from .schema import dig, extract_json_from_text, normalize_bill_result


class Analyzer:
    """One AI backend able to read a bill photo.

    Subclasses build the provider's request body and say where the model's
    JSON text sits in the answer; fetching, unwrapping and normalization
    are shared.
    """

    def __init__(self, descriptor: ProviderDescriptor, *, timeout_seconds: float = 60):
        self.descriptor = descriptor
        self.timeout_seconds = timeout_seconds

    @property
    def provider_id(self) -> str:
        return self.descriptor.provider_id

    def _api_key(self) -> str:
        key = self.descriptor.api_key
        if not key:
            raise ProviderNotConfigured(self.provider_id, self.descriptor.credential_ref)
        return key

    def _call(self, image_b64: str, prompt: str, mime_type: str) -> Dict[str, Any]:
        raise NotImplementedError

    def analyze(self, image: bytes, prompt: str, mime_type: str = "image/jpeg") -> BillExtractionResult:
        image_b64 = base64.b64encode(image).decode("ascii")
        data = self._call(image_b64, prompt, mime_type)
        text = dig(data, self.descriptor.response_extractor)
        if text is None:
            raise MalformedProviderResponse(
                self.provider_id, f"missing {self.descriptor.response_extractor} in response"
            )
        return normalize_bill_result(self.provider_id, extract_json_from_text(self.provider_id, text))
