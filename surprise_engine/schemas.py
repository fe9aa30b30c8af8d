from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ------- Directives -------
class MagicRefinement(str, Enum):
    MORE_UNIQUE = "more_unique"
    MORE_ENERGY = "more_energy"
    CLOSER_TOGETHER = "closer_together"
    MORE_CURATED = "more_curated"
    MORE_AFFORDABLE = "more_affordable"


CrewType = Literal["romantic", "friends", "family"]
AnchorType = Literal[
    "adventurous",
    "creative",
    "intellectual",
    "cultured",
    "high_energy",
    "playful_competitive",
    "purposeful",
    "culinary",
]


# ------- Policy models -------
class CrewPolicy(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    safety_floor: float = Field(..., ge=0.0, le=1.0, alias="safetyFloor")
    friction_tolerance: Optional[float] = Field(None, alias="frictionTolerance")
    budget_flexibility: Optional[float] = Field(None, alias="budgetFlexibility")
    logistics_weight: Optional[float] = Field(None, alias="logisticsWeight")
    uniqueness_tolerance: Optional[float] = Field(None, alias="uniquenessTolerance")
    ticket_friction_tolerance: Optional[float] = Field(None, alias="ticketFrictionTolerance")
    arc_soft_bias: Optional[Literal["gentle", "balanced", "dynamic"]] = Field(None, alias="arcSoftBias")


class AnchorPolicy(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category_weights: Dict[str, float] = Field(default_factory=dict, alias="categoryWeights")
    uniqueness_boost: Optional[float] = Field(None, alias="uniquenessBoost")
    event_injection_boost: Optional[float] = Field(None, alias="eventInjectionBoost")
    indoor_bias: Optional[float] = Field(None, alias="indoorBias")
    physical_intensity: Optional[float] = Field(None, alias="physicalIntensity")
    seasonal_relevance: Optional[float] = Field(None, alias="seasonalRelevance")


# ------- Candidates -------
class NormalizedCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    place_id: Optional[str] = Field(None, alias="placeId")
    category: Optional[str] = None
    type: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    types: List[str] = Field(default_factory=list)
    signals: Dict[str, float] = Field(default_factory=dict)  # numeric scoring fields

    def tokens(self) -> List[str]:
        """Category, type and types in that order, blanks and repeats removed."""
        out: List[str] = []
        for token in (self.category or "", self.type or "", *self.types):
            token = token.strip().lower()
            if token and token not in out:
                out.append(token)
        return out

    def to_meta(self) -> Dict[str, Any]:
        exclude = None if self.signals else {"signals"}
        return self.model_dump(by_alias=True, exclude=exclude)


# ------- Report -------
class SurpriseChecks(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    non_predictable: bool = Field(True, alias="nonPredictable")
    cohesive_arc: bool = Field(True, alias="cohesiveArc")
    crew_guardrails: bool = Field(True, alias="crewGuardrails")


class SurpriseReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    applied: SurpriseChecks = Field(default_factory=SurpriseChecks)
    wildcard_injected: Literal[0, 1] = Field(0, alias="wildcardInjected")
    notes: List[str] = Field(default_factory=list)

    def to_meta(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class SurpriseEnforcement(BaseModel):
    plan: Dict[str, Any]
    report: SurpriseReport


# ------- HTTP payloads -------
class SurpriseRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    plan: Dict[str, Any]
    crew: Optional[CrewType] = None
    crew_policy: Optional[CrewPolicy] = Field(None, alias="crewPolicy")
    anchor: Optional[AnchorType] = None
    anchor_policy: Optional[AnchorPolicy] = Field(None, alias="anchorPolicy")
    magic_refinement: Optional[MagicRefinement] = Field(None, alias="magicRefinement")
    namespace: Optional[str] = None

    @field_validator("namespace")
    @classmethod
    def _strip_namespace(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

