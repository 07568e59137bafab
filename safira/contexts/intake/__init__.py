"""
Intake Context

Responsibilities:
- Defines the canonical CV document structure
- Converts the mobile wizard's wire format into typed documents
- Validates the minimum required identity fields

Owns: CV data model, request validation, the sample CV
Never: Renders markup or talks to the rendering engine
"""

from safira.contexts.intake.cv_data_structure import (
    Certificate,
    CVDocument,
    EducationEntry,
    ExperienceEntry,
    Language,
    Location,
    MonthYear,
    PersonalInfo,
    ProfessionalSummary,
    Reference,
    Skill,
    SkillSet,
)
from safira.contexts.intake.sample import sample_cv
from safira.contexts.intake.validator import missing_identity_fields, validate_cv_data

__all__ = [
    # Data structure classes
    "CVDocument",
    "PersonalInfo",
    "ProfessionalSummary",
    "EducationEntry",
    "ExperienceEntry",
    "Location",
    "MonthYear",
    "Skill",
    "SkillSet",
    "Language",
    "Certificate",
    "Reference",
    # Validation
    "validate_cv_data",
    "missing_identity_fields",
    "sample_cv",
]
