from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Type

from fairshare_gateway.config import Config
from fairshare_gateway.errors import UnknownProvider

from .base import Analyzer
from .gemini import GeminiAnalyzer
from .openai_compat import OpenAICompatAnalyzer


ANALYZERS_BY_SHAPE: Mapping[str, Type[Analyzer]] = MappingProxyType(
    {
        "gemini": GeminiAnalyzer,
        "openai_chat": OpenAICompatAnalyzer,
    }
)


class AnalyzerRegistry:
    """Read-only provider_id -> Analyzer map built once at startup."""

    def __init__(self, analyzers: Mapping[str, Analyzer]):
        self._analyzers: Mapping[str, Analyzer] = MappingProxyType(dict(analyzers))

    @classmethod
    def from_config(cls, cfg: Config) -> "AnalyzerRegistry":
        analyzers: Dict[str, Analyzer] = {}
        for desc in cfg.PROVIDERS:
            analyzer_cls = ANALYZERS_BY_SHAPE.get(desc.request_shape)
            if analyzer_cls is None:
                raise ValueError(f"Unsupported request_shape for {desc.provider_id}: {desc.request_shape}")
            analyzers[desc.provider_id] = analyzer_cls(desc, timeout_seconds=cfg.PROVIDER_TIMEOUT_SECONDS)
        return cls(analyzers)

    def get(self, provider_id: str) -> Analyzer:
        analyzer = self._analyzers.get(provider_id)
        if analyzer is None:
            raise UnknownProvider(provider_id)
        return analyzer

    def provider_ids(self) -> list[str]:
        return sorted(self._analyzers)
