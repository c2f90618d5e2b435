"""
Data model for one analysis request/response cycle.

All objects are request-scoped values; nothing here is shared between requests.
to_dict() produces the JSON shape the front end renders (camelCase at the top level,
snake_case inside findings, as the engine emits them).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


STATUS_VALUES = ("normal", "high", "low", "unknown")


class EnvelopeShape(Enum):
    """Where the analysis text was found in the engine response."""
    MESSAGE = "message"  # outputs[0].outputs[0].results.message.text, free-form prose
    TEXT = "text"        # outputs[0].outputs[0].results.text.text, (fenced) JSON document


@dataclass
class LocatedText:
    shape: EnvelopeShape
    text: str


@dataclass
class UserMetadata:
    full_name: str
    age: str
    health_goal: Optional[str] = None
    gender: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"fullName": self.full_name, "age": self.age}
        if self.health_goal is not None:
            data["healthGoal"] = self.health_goal
        if self.gender is not None:
            data["gender"] = self.gender
        return data


@dataclass
class AnalysisRequest:
    """One form submission: who the report belongs to and the PDF itself."""
    full_name: str
    age: str
    filename: str
    content: bytes
    content_type: str = "application/pdf"
    health_goal: Optional[str] = None
    gender: Optional[str] = None

    @property
    def metadata(self) -> UserMetadata:
        return UserMetadata(
            full_name=self.full_name,
            age=self.age,
            health_goal=self.health_goal,
            gender=self.gender,
        )


@dataclass
class UploadHandle:
    """Server-side path of a file uploaded to the engine; threads upload → run."""
    file_path: str


@dataclass
class KeyFinding:
    test_name: str
    value: str
    status: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "test_name": self.test_name,
            "value": self.value,
            "status": self.status,
            "description": self.description,
        }


@dataclass
class AbnormalFinding:
    test_name: str
    current_value: str
    reference_range: str
    significance: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "test_name": self.test_name,
            "current_value": self.current_value,
            "reference_range": self.reference_range,
            "significance": self.significance,
        }


@dataclass
class Supplement:
    name: str
    dosage: str
    rationale: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "dosage": self.dosage, "rationale": self.rationale}


@dataclass
class LifestyleRecommendation:
    title: str
    items: List[str] = field(default_factory=list)
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "items": list(self.items), "description": self.description}


@dataclass
class BloodTestRow:
    """One row scraped from free-text analysis: 'Glucose: 92 mg/dl (70-100)'."""
    parameter: str
    value: str
    unit: str
    normal_range: str
    status: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "parameter": self.parameter,
            "value": self.value,
            "unit": self.unit,
            "normalRange": self.normal_range,
            "status": self.status,
        }


@dataclass
class AnalysisResult:
    """Canonical, fully-defaulted analysis result handed to the UI."""
    user_metadata: UserMetadata
    summary: str
    key_findings: List[KeyFinding]
    abnormal_findings: List[AbnormalFinding]
    recommended_supplements: List[Supplement]
    lifestyle_recommendations: Dict[str, LifestyleRecommendation]
    disclaimer: str
    raw_analysis: str
    blood_results: List[BloodTestRow] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userMetadata": self.user_metadata.to_dict(),
            "summary": self.summary,
            "keyFindings": [f.to_dict() for f in self.key_findings],
            "abnormalFindings": [f.to_dict() for f in self.abnormal_findings],
            "recommendedSupplements": [s.to_dict() for s in self.recommended_supplements],
            "lifestyleRecommendations": {
                category: rec.to_dict() for category, rec in self.lifestyle_recommendations.items()
            },
            "disclaimer": self.disclaimer,
            "rawAnalysis": self.raw_analysis,
            "bloodResults": [row.to_dict() for row in self.blood_results],
            "recommendations": list(self.recommendations),
        }


@dataclass
class ProductRecommendation:
    id: str
    name: str
    category: str
    description: str
    price: str
    image: str
    benefits: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price": self.price,
            "image": self.image,
            "benefits": list(self.benefits),
        }
