"""Data contracts for the conversion pipeline.

All structured types passed between the fingerprinter, cache tiers,
analyzer, synthesizer and orchestrator. Kept as dataclasses (not ORM
models); every type round-trips through ``to_dict``/``from_dict`` so
the cache tiers can store results by value.
"""

import copy
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4


class IssueSeverity(str, Enum):
    """Severity of a conversion issue."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class IssueCategory(str, Enum):
    """What a conversion issue is about."""
    PERFORMANCE = "performance"
    SCALABILITY = "scalability"
    SYNTAX = "syntax"
    DATA_TYPE = "data_type"
    BEST_PRACTICE = "best_practice"
    MAINTAINABILITY = "maintainability"


class ConversionStatus(str, Enum):
    """Overall outcome of one conversion attempt."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class MaintainabilityStrategy(str, Enum):
    """Which maintainability formula the analyzer applies."""
    PENALTY = "penalty"     # line/complexity/comment penalties from 100
    HALSTEAD = "halstead"   # classic 171 - 5.2 ln V - 0.23 CC - 16.2 ln LOC


@dataclass(frozen=True)
class SourceUnit:
    """One uploaded source file. Never mutated after creation."""
    identifier: str
    text: str

    def validate(self) -> None:
        """Raise ValueError when the unit cannot be converted."""
        if not isinstance(self.text, str):
            raise ValueError(
                f"SourceUnit {self.identifier!r} has no text "
                f"(got {type(self.text).__name__})"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"identifier": self.identifier, "text": self.text}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceUnit":
        return cls(identifier=data["identifier"], text=data["text"])


@dataclass(frozen=True)
class CacheKey:
    """Fixed-length fingerprint of (normalized text, model)."""
    digest: str


@dataclass
class ComplexityProfile:
    """Structural metrics for one piece of SQL text.

    Produced fresh by the analyzer every time; never persisted on its own.
    """
    total_lines: int
    code_lines: int
    comment_lines: int
    empty_lines: int
    control_structure_count: int
    function_count: int
    cyclomatic_complexity: int
    comment_ratio: float
    maintainability_index: int
    loop_count: int = 0
    halstead_volume: float = 0.0


@dataclass(frozen=True)
class ConversionIssue:
    """A problem found by the AI step or the quantitative analyzer."""
    id: str
    severity: IssueSeverity
    description: str
    original_snippet: str
    suggested_fix: str
    category: IssueCategory
    line_number: int = 1
    performance_impact: Optional[str] = None

    @classmethod
    def create(
        cls,
        severity: IssueSeverity,
        description: str,
        original_snippet: str = "",
        suggested_fix: str = "",
        category: IssueCategory = IssueCategory.BEST_PRACTICE,
        performance_impact: Optional[str] = None,
    ) -> "ConversionIssue":
        return cls(
            id=str(uuid4()),
            severity=severity,
            description=description,
            original_snippet=original_snippet,
            suggested_fix=suggested_fix,
            category=category,
            performance_impact=performance_impact,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["category"] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionIssue":
        return cls(
            id=data["id"],
            severity=IssueSeverity(data["severity"]),
            description=data["description"],
            original_snippet=data.get("original_snippet", ""),
            suggested_fix=data.get("suggested_fix", ""),
            category=IssueCategory(data.get("category", "best_practice")),
            line_number=int(data.get("line_number", 1)),
            performance_impact=data.get("performance_impact"),
        )


@dataclass(frozen=True)
class DataTypeMapping:
    """A Sybase type found in the source and its Oracle equivalent."""
    sybase_type: str
    oracle_type: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataTypeMapping":
        return cls(
            sybase_type=data["sybase_type"],
            oracle_type=data["oracle_type"],
            description=data.get("description", ""),
        )


@dataclass
class ScalabilityMetrics:
    scalability_score: float = 0.0
    modern_feature_count: int = 0
    bulk_operations_used: bool = False
    bulk_collect_used: bool = False
    maintainability_score: float = 0.0


@dataclass
class CodeQuality:
    total_lines: int = 0
    code_lines: int = 0
    comment_ratio: int = 0          # percent of total lines
    complexity_level: str = "Low"   # Low | Medium | High


@dataclass
class PerformanceMetrics:
    """Synthesized before/after bundle consumed by reports and dashboards."""
    original_complexity: int = 0
    converted_complexity: int = 0
    improvement_percentage: int = 0
    conversion_time_ms: int = 0
    performance_score: int = 0
    maintainability_index: int = 0
    original_lines: int = 0
    converted_lines: int = 0
    original_loops: int = 0
    converted_loops: int = 0
    lines_reduced: int = 0
    loops_reduced: int = 0
    code_quality: CodeQuality = field(default_factory=CodeQuality)
    recommendations: List[str] = field(default_factory=list)
    scalability_metrics: ScalabilityMetrics = field(default_factory=ScalabilityMetrics)

    @classmethod
    def zeroed(cls, latency_ms: int = 0) -> "PerformanceMetrics":
        """All-zero metrics used for failed conversions."""
        return cls(conversion_time_ms=latency_ms)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PerformanceMetrics":
        data = dict(data)
        code_quality = CodeQuality(**data.pop("code_quality", {}) or {})
        scalability = ScalabilityMetrics(**data.pop("scalability_metrics", {}) or {})
        recommendations = list(data.pop("recommendations", []) or [])
        return cls(
            code_quality=code_quality,
            scalability_metrics=scalability,
            recommendations=recommendations,
            **data,
        )


@dataclass
class ConversionResult:
    """Aggregate produced once per conversion attempt.

    Owned by the orchestrator. Cache tiers hold it by value; callers
    always receive their own copy.
    """
    id: str
    source_unit: SourceUnit
    converted_text: str
    issues: List[ConversionIssue] = field(default_factory=list)
    data_type_mappings: List[DataTypeMapping] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    status: ConversionStatus = ConversionStatus.SUCCESS
    explanations: List[str] = field(default_factory=list)
    performance_optimizations: List[str] = field(default_factory=list)
    oracle_features: List[str] = field(default_factory=list)
    model_id: str = ""
    scalability_score: Optional[float] = None      # model's own 1-10 hint
    maintainability_score: Optional[float] = None  # model's own 1-10 hint

    def copy(self) -> "ConversionResult":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_unit": self.source_unit.to_dict(),
            "converted_text": self.converted_text,
            "issues": [i.to_dict() for i in self.issues],
            "data_type_mappings": [m.to_dict() for m in self.data_type_mappings],
            "performance": self.performance.to_dict(),
            "status": self.status.value,
            "explanations": list(self.explanations),
            "performance_optimizations": list(self.performance_optimizations),
            "oracle_features": list(self.oracle_features),
            "model_id": self.model_id,
            "scalability_score": self.scalability_score,
            "maintainability_score": self.maintainability_score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionResult":
        """Rebuild a result from its dict form.

        Raises KeyError/TypeError/ValueError on malformed payloads; the
        cache tiers treat those as misses.
        """
        return cls(
            id=data["id"],
            source_unit=SourceUnit.from_dict(data["source_unit"]),
            converted_text=data["converted_text"],
            issues=[ConversionIssue.from_dict(i) for i in data.get("issues", [])],
            data_type_mappings=[
                DataTypeMapping.from_dict(m) for m in data.get("data_type_mappings", [])
            ],
            performance=PerformanceMetrics.from_dict(data.get("performance", {})),
            status=ConversionStatus(data.get("status", "success")),
            explanations=list(data.get("explanations", [])),
            performance_optimizations=list(data.get("performance_optimizations", [])),
            oracle_features=list(data.get("oracle_features", [])),
            model_id=data.get("model_id", ""),
            scalability_score=data.get("scalability_score"),
            maintainability_score=data.get("maintainability_score"),
        )


def derive_status(issues: List[ConversionIssue]) -> ConversionStatus:
    """Collapse issues into one result status.

    Only a critical issue fails the result; any other issue is a warning.
    """
    if any(i.severity == IssueSeverity.CRITICAL for i in issues):
        return ConversionStatus.ERROR
    if issues:
        return ConversionStatus.WARNING
    return ConversionStatus.SUCCESS
