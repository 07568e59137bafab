"""
Request validation at the service boundary.

Checks the minimum a CV needs before anything is rendered: the data object
itself, the personal information block, and the identity fields. Failures
are ValidationErrors with actionable messages; they never reach the
templating or rendering contexts.
"""

from typing import Any, List, Mapping

from safira.contexts.intake.cv_data_structure import CVDocument, PersonalInfo
from safira.contexts.intake.logger import log_rejected_input
from safira.exceptions import ValidationError

# Wire name -> PersonalInfo attribute, in the order reported to callers
REQUIRED_IDENTITY_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
}


def missing_identity_fields(personal_info: Any) -> List[str]:
    """
    List the required identity fields that are absent or blank.

    Accepts either a wire-format mapping or a PersonalInfo instance.

    Args:
        personal_info: personalInfo block

    Returns:
        Wire names of missing fields (empty list when all are present)
    """
    missing = []
    for wire_name, attribute in REQUIRED_IDENTITY_FIELDS.items():
        if isinstance(personal_info, PersonalInfo):
            value = getattr(personal_info, attribute)
        elif isinstance(personal_info, Mapping):
            value = personal_info.get(wire_name)
        else:
            value = None
        if value is None or not str(value).strip():
            missing.append(wire_name)
    return missing


def validate_cv_data(raw: Any) -> CVDocument:
    """
    Validate a raw CV payload and convert it to a CVDocument.

    Args:
        raw: Wire-format CV data as received from the caller

    Returns:
        CVDocument ready for rendering

    Raises:
        ValidationError: If the payload, personalInfo, or an identity field is missing
        RenderError: If a nested section has an impossible shape
    """
    if not raw or not isinstance(raw, Mapping):
        log_rejected_input("no CV data")
        raise ValidationError("CV data is required")

    personal_info = raw.get("personalInfo")
    if not personal_info or not isinstance(personal_info, Mapping):
        log_rejected_input("no personalInfo")
        raise ValidationError("Personal information is required")

    missing = missing_identity_fields(personal_info)
    if missing:
        log_rejected_input(f"missing {', '.join(missing)}")
        raise ValidationError(
            f"First name, last name, and email are required (missing: {', '.join(missing)})"
        )

    return CVDocument.from_dict(raw)
