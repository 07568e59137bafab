"""
CV document data structure for the Intake context.

Provides CVDocument and its component dataclasses. Instances are built from
the camelCase wire format produced by the mobile CV wizard and consumed by
the Templating context. Documents live for a single request and are never
persisted.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from safira.contexts.intake.logger import log_malformed_field
from safira.exceptions import RenderError


@dataclass(frozen=True)
class MonthYear:
    """Calendar month (1-12) and year."""

    month: int
    year: int


# Either a structured date, legacy scalar data (e.g. "2019" or "Spring 2020"), or None
DateValue = Union[MonthYear, str, int, float, None]


@dataclass
class PersonalInfo:
    """
    Identity and contact block.

    first_name, last_name and email are required for any generation to proceed.
    """

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""
    country: str = ""
    linked_in: str = ""
    job_title: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def location(self) -> str:
        """City and country joined, with empty parts dropped."""
        return ", ".join(part for part in (self.city, self.country) if part)


@dataclass
class ProfessionalSummary:
    text: str = ""


@dataclass
class EducationEntry:
    degree: str = ""
    field_of_study: str = ""
    institution: str = ""
    start_date: DateValue = None
    end_date: DateValue = None
    is_currently: bool = False
    gpa: str = ""
    achievements: str = ""


@dataclass
class Location:
    city: str = ""


@dataclass
class ExperienceEntry:
    job_title: str = ""
    organization: str = ""
    location: Location = field(default_factory=Location)
    start_date: DateValue = None
    end_date: DateValue = None
    is_currently: bool = False
    responsibilities: List[str] = field(default_factory=list)


@dataclass
class Skill:
    """A named skill; level is free-form and normalized only at display time."""

    name: str = ""
    level: Optional[str] = None


@dataclass
class SkillSet:
    technical: List[Skill] = field(default_factory=list)
    software: List[Skill] = field(default_factory=list)
    soft: List[Skill] = field(default_factory=list)

    @property
    def groups(self) -> List[tuple]:
        """(label, skills) pairs in display order, including empty groups."""
        return [
            ("Technical", self.technical),
            ("Software", self.software),
            ("Soft Skills", self.soft),
        ]

    def __len__(self) -> int:
        return len(self.technical) + len(self.software) + len(self.soft)


@dataclass
class Language:
    name: str = ""
    proficiency: str = ""


@dataclass
class Certificate:
    name: str = ""
    issuer: str = ""
    year: str = ""


@dataclass
class Reference:
    name: str = ""
    position: str = ""
    company: str = ""
    phone: str = ""
    email: str = ""


@dataclass
class CVDocument:
    """
    Complete input to rendering.

    Ordered lists keep the caller-supplied order; nothing is sorted or deduplicated.

    Factory methods:
        from_dict(data) - Build from the camelCase wire format
    """

    personal_info: PersonalInfo
    professional_summary: ProfessionalSummary = field(default_factory=ProfessionalSummary)
    education: List[EducationEntry] = field(default_factory=list)
    experience: List[ExperienceEntry] = field(default_factory=list)
    skills: SkillSet = field(default_factory=SkillSet)
    languages: List[Language] = field(default_factory=list)
    certificates: List[Certificate] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return self.personal_info.full_name

    # =========================================================================
    # FACTORY METHODS
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CVDocument":
        """
        Build a CVDocument from the wire format.

        Conversion is lenient: missing optional sections become empty, and a
        bare string where a list of responsibilities is expected becomes a
        one-item list. Shapes that cannot be interpreted at all raise
        RenderError; the offending field path is logged but not surfaced.

        Args:
            data: Mapping with personalInfo, professionalSummary, education,
                  experience, skills, languages, certificates, references

        Returns:
            CVDocument instance

        Raises:
            RenderError: If a section has an impossible shape
        """
        if not isinstance(data, Mapping):
            log_malformed_field("<root>", TypeError(f"expected mapping, got {type(data).__name__}"))
            raise RenderError()

        personal = _mapping(data.get("personalInfo"), "personalInfo")
        summary = data.get("professionalSummary")
        if isinstance(summary, str):
            summary_text = summary
        else:
            summary_text = _text(_mapping(summary, "professionalSummary").get("text"))

        skills = _mapping(data.get("skills"), "skills")

        return cls(
            personal_info=PersonalInfo(
                first_name=_text(personal.get("firstName")),
                last_name=_text(personal.get("lastName")),
                email=_text(personal.get("email")),
                phone=_text(personal.get("phone")),
                city=_text(personal.get("city")),
                country=_text(personal.get("country")),
                linked_in=_text(personal.get("linkedIn")),
                job_title=_text(personal.get("jobTitle") or personal.get("title")),
            ),
            professional_summary=ProfessionalSummary(text=summary_text),
            education=[
                _education(entry, f"education[{i}]")
                for i, entry in enumerate(_sequence(data.get("education"), "education"))
            ],
            experience=[
                _experience(entry, f"experience[{i}]")
                for i, entry in enumerate(_sequence(data.get("experience"), "experience"))
            ],
            skills=SkillSet(
                technical=_skills(skills.get("technical"), "skills.technical"),
                software=_skills(skills.get("software"), "skills.software"),
                soft=_skills(skills.get("soft"), "skills.soft"),
            ),
            languages=[
                Language(name=_text(entry.get("name")), proficiency=_text(entry.get("proficiency")))
                for entry in _entries(data.get("languages"), "languages")
            ],
            certificates=[
                Certificate(
                    name=_text(entry.get("name")),
                    issuer=_text(entry.get("issuer")),
                    year=_text(entry.get("year")),
                )
                for entry in _entries(data.get("certificates"), "certificates")
            ],
            references=[
                Reference(
                    name=_text(entry.get("name")),
                    position=_text(entry.get("position")),
                    company=_text(entry.get("company")),
                    phone=_text(entry.get("phone")),
                    email=_text(entry.get("email")),
                )
                for entry in _entries(data.get("references"), "references")
            ],
        )


# =========================================================================
# CONVERSION HELPERS
# =========================================================================


def _text(value: Any) -> str:
    """Coerce a scalar field to a stripped string ('' for None)."""
    if value is None:
        return ""
    if isinstance(value, (dict, list, tuple, set)):
        raise RenderError()
    return str(value).strip()


def _flag(value: Any) -> bool:
    """Read a wire boolean; the string "false" from form fields stays False."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _mapping(value: Any, path: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        log_malformed_field(path, TypeError(f"expected object, got {type(value).__name__}"))
        raise RenderError()
    return value


def _sequence(value: Any, path: str) -> list:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not hasattr(value, "__iter__"):
        log_malformed_field(path, TypeError(f"expected list, got {type(value).__name__}"))
        raise RenderError()
    return list(value)


def _entries(value: Any, path: str) -> List[Mapping[str, Any]]:
    return [_mapping(entry, f"{path}[{i}]") for i, entry in enumerate(_sequence(value, path))]


def _date(value: Any, path: str) -> DateValue:
    """
    Convert a wire date to MonthYear, keeping legacy scalars unchanged.

    A mapping without a usable year (e.g. {} from an untouched form field) becomes None.
    """
    if value is None or isinstance(value, (str, int, float)):
        return value
    if isinstance(value, Mapping):
        year = value.get("year")
        month = value.get("month")
        try:
            year = int(year) if year not in (None, "") else None
            month = int(month) if month not in (None, "") else 0
        except (TypeError, ValueError, OverflowError) as e:
            log_malformed_field(path, e)
            raise RenderError() from e
        if year is None:
            return None
        return MonthYear(month=month, year=year)
    log_malformed_field(path, TypeError(f"unsupported date type {type(value).__name__}"))
    raise RenderError()


def _education(entry: Any, path: str) -> EducationEntry:
    entry = _mapping(entry, path)
    return EducationEntry(
        degree=_text(entry.get("degree")),
        field_of_study=_text(entry.get("fieldOfStudy")),
        institution=_text(entry.get("institution")),
        start_date=_date(entry.get("startDate"), f"{path}.startDate"),
        end_date=_date(entry.get("endDate"), f"{path}.endDate"),
        is_currently=_flag(entry.get("isCurrently")),
        gpa=_text(entry.get("gpa")),
        achievements=_text(entry.get("achievements")),
    )


def _experience(entry: Any, path: str) -> ExperienceEntry:
    entry = _mapping(entry, path)

    location = entry.get("location")
    if isinstance(location, str):
        city = location
    else:
        city = _text(_mapping(location, f"{path}.location").get("city"))

    responsibilities = entry.get("responsibilities")
    if isinstance(responsibilities, str):
        responsibilities = [responsibilities]
    responsibilities = [
        _text(item)
        for item in _sequence(responsibilities, f"{path}.responsibilities")
        if item is not None and _text(item)
    ]

    return ExperienceEntry(
        job_title=_text(entry.get("jobTitle") or entry.get("position")),
        organization=_text(entry.get("organization") or entry.get("company")),
        location=Location(city=_text(city)),
        start_date=_date(entry.get("startDate"), f"{path}.startDate"),
        end_date=_date(entry.get("endDate"), f"{path}.endDate"),
        is_currently=_flag(entry.get("isCurrently")),
        responsibilities=responsibilities,
    )


def _skills(value: Any, path: str) -> List[Skill]:
    skills = []
    for i, entry in enumerate(_sequence(value, path)):
        # Plain strings are accepted for skills entered without a level
        if isinstance(entry, str):
            skills.append(Skill(name=entry.strip()))
            continue
        entry = _mapping(entry, f"{path}[{i}]")
        level = entry.get("level")
        skills.append(Skill(name=_text(entry.get("name")), level=_text(level) or None))
    return skills
