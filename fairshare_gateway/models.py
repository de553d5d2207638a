from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class BillType(str, Enum):
    ELECTRICITY = "ELECTRICITY"
    GAS = "GAS"
    WATER = "WATER"


@dataclass(frozen=True)
class CredentialRecord:
    id: int
    username: str
    password_verifier: str = field(repr=False)


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of one AI backend.

    credential_ref names the environment variable the key was read from;
    api_key holds the resolved value and is kept out of repr().
    """

    provider_id: str
    endpoint_url: str
    credential_ref: str
    model_id: str
    request_shape: str  # gemini|openai_chat
    response_extractor: str  # dotted path of the embedded JSON text
    api_key: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class BillPeriod:
    start_date: str
    end_date: str
    usage_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {"startDate": self.start_date, "endDate": self.end_date, "usageCost": self.usage_cost}


@dataclass(frozen=True)
class BillExtractionResult:
    type: BillType
    suggested_name: str
    periods: Tuple[BillPeriod, ...]
    supply_cost: float
    sewerage_cost: float

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape (camelCase keys, as the web client expects)."""
        return {
            "type": self.type.value,
            "suggestedName": self.suggested_name,
            "periods": [p.to_dict() for p in self.periods],
            "supplyCost": self.supply_cost,
            "sewerageCost": self.sewerage_cost,
        }
