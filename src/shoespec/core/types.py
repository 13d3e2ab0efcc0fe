"""Core data types shared across extraction stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Literal

Scenario = Literal["specific", "brand-only", "general", "irrelevant"]
Source = Literal["regex", "llm"]
Method = Literal["regex", "llm", "hybrid"]
State = Literal["completed", "failed"]
Stage = Literal["pattern", "title", "llm", "validate", "dedupe", "build"]

NUMERIC_FIELDS = ("heel_height", "forefoot_height", "drop", "weight", "price")
BOOLEAN_FIELDS = ("carbon_plate", "waterproof")
TEXT_FIELDS = (
    "upper_breathability",
    "primary_use",
    "cushioning_type",
    "surface_type",
    "foot_width",
    "additional_features",
)
# Fields the pattern extractor rarely fills; a specific review missing any
# of these is worth a hybrid pass.
HYBRID_TEXT_FIELDS = ("cushioning_type", "foot_width", "waterproof")
COVERAGE_FIELDS = NUMERIC_FIELDS + BOOLEAN_FIELDS + TEXT_FIELDS
IDENTITY_FIELDS = ("brand_name", "model")
SCHEMA_SIZE = len(IDENTITY_FIELDS) + len(COVERAGE_FIELDS)


@dataclass
class SpecRecord:
    brand_name: str | None = None
    model: str | None = None
    heel_height: float | None = None
    forefoot_height: float | None = None
    drop: float | None = None
    weight: float | None = None
    price: float | None = None
    upper_breathability: str | None = None
    carbon_plate: bool | None = None
    waterproof: bool | None = None
    primary_use: str | None = None
    cushioning_type: str | None = None
    surface_type: str | None = None
    foot_width: str | None = None
    additional_features: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def replace(self, **changes: Any) -> "SpecRecord":
        return replace(self, **changes)

    @property
    def identity(self) -> str | None:
        """Case-insensitive ``brand:model`` key, ``None`` if either is missing."""
        if not self.brand_name or not self.model:
            return None
        return f"{self.brand_name.lower()}:{self.model.lower()}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpecRecord":
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass(frozen=True)
class TitleAnalysis:
    scenario: Scenario
    brand: str | None = None
    model: str | None = None
    confidence: float = 0.0


@dataclass
class Candidate:
    """A pre-validation record plus where it came from."""

    record: SpecRecord
    source: Source = "regex"

    def richness(self) -> int:
        score = 0
        for name in NUMERIC_FIELDS + BOOLEAN_FIELDS:
            if getattr(self.record, name) is not None:
                score += 2
        for name in TEXT_FIELDS:
            value = getattr(self.record, name)
            if isinstance(value, str) and value.strip():
                score += 1
        return score


@dataclass
class CoverageReport:
    total_sneakers: int = 0
    average_coverage: float = 0.0
    field_coverage: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSneakers": self.total_sneakers,
            "averageCoverage": self.average_coverage,
            "fieldCoverage": dict(self.field_coverage),
        }


@dataclass(frozen=True)
class Rejection:
    """A candidate dropped on the way to the sink, and why."""

    brand_name: str | None
    model: str | None
    reason: str
    stage: Stage

    @classmethod
    def of(cls, record: SpecRecord, reason: str, stage: Stage) -> "Rejection":
        return cls(record.brand_name, record.model, reason, stage)


@dataclass
class Article:
    id: str
    title: str
    content: str
    date: str | None = None
    source_link: str | None = None


@dataclass
class ExtractionResult:
    article_id: str
    records: tuple[SpecRecord, ...] = ()
    method: Method = "regex"
    state: State = "completed"
    title_analysis: TitleAnalysis | None = None
    coverage: CoverageReport = field(default_factory=CoverageReport)
    warnings: list[str] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.state == "completed"
