"""
Anonymization rules for the subject record

Rules are applied in order. Each one either replaces a field with a fixed
placeholder or derives the placeholder from a fresh anonymous identifier.
Re-applying the rules to an anonymized record leaves it unchanged.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List
import re

from sqlalchemy import String, literal

from ..constants import AnonymizationDefaults
from ..storage.tables import StudentDB, SubjectFileDB

FAMILY_NAME_PATTERN = re.compile(
    rf"^{AnonymizationDefaults.FAMILY_NAME_PREFIX}-"
    rf"[0-9a-f]{{{AnonymizationDefaults.FAMILY_NAME_SUFFIX_LENGTH}}}$"
)


@dataclass(frozen=True)
class AnonymizationRule:
    """Replacement for one subject attribute"""
    field: str
    replace: Callable[[Any, str], Any]
    label: str

    def is_satisfied(self, current: Any) -> bool:
        """True when the current value already carries the placeholder"""
        if self.field == "family_name":
            return bool(current) and FAMILY_NAME_PATTERN.match(current) is not None
        return current == self.replace(current, "")


def _fixed(value: Any) -> Callable[[Any, str], Any]:
    return lambda current, anonymous_id: value


def _family_name(current: Any, anonymous_id: str) -> str:
    if current and FAMILY_NAME_PATTERN.match(current):
        return current
    suffix = anonymous_id[:AnonymizationDefaults.FAMILY_NAME_SUFFIX_LENGTH]
    return f"{AnonymizationDefaults.FAMILY_NAME_PREFIX}-{suffix}"


SUBJECT_RULES: List[AnonymizationRule] = [
    AnonymizationRule("given_name", _fixed(AnonymizationDefaults.GIVEN_NAME), "given name"),
    AnonymizationRule("family_name", _family_name, "family name"),
    AnonymizationRule("email", _fixed(None), "email"),
    AnonymizationRule("birth_date", _fixed(AnonymizationDefaults.BIRTH_DATE), "birth date"),
    AnonymizationRule("current_level", _fixed(AnonymizationDefaults.CURRENT_LEVEL), "current level"),
    AnonymizationRule("mascot_type", _fixed(AnonymizationDefaults.MASCOT_TYPE), "mascot type"),
    AnonymizationRule("mascot_color", _fixed(AnonymizationDefaults.MASCOT_COLOR), "mascot colour"),
    AnonymizationRule("last_access", _fixed(None), "last access"),
    AnonymizationRule("is_connected", _fixed(False), "presence flag"),
]


def anonymized_values(student: StudentDB, anonymous_id: str) -> Dict[str, Any]:
    """Replacement values for the subject row, in rule order"""
    return {
        rule.field: rule.replace(getattr(student, rule.field), anonymous_id)
        for rule in SUBJECT_RULES
    }


def unanonymized_fields(student: StudentDB) -> List[str]:
    """Labels of the subject fields still carrying original data"""
    return [
        rule.label
        for rule in SUBJECT_RULES
        if not rule.is_satisfied(getattr(student, rule.field))
    ]


def anonymized_file_values() -> Dict[str, Any]:
    """Replacement values for file rows; the path is rebuilt from each row id"""
    return {
        "file_name": AnonymizationDefaults.FILE_NAME,
        "file_path": literal(AnonymizationDefaults.FILE_PATH_PREFIX, String) + SubjectFileDB.id,
    }


def file_is_anonymized(row: Dict[str, Any]) -> bool:
    return (row["file_name"] == AnonymizationDefaults.FILE_NAME
            and row["file_path"] == AnonymizationDefaults.FILE_PATH_PREFIX + row["id"])
