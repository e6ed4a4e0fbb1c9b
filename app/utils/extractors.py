# =======================================================================================
# app/utils/extractors.py - Contact Field Extraction
# =======================================================================================
import re
from dataclasses import dataclass
from typing import Any, List, Optional
from .exceptions import ExtractionError
from ..models.enums import FieldShape
from ..models.schemas import Contact, FieldValue

_TAG_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT32_MIN = -(2 ** 31)
_INT32_MAX = 2 ** 31 - 1
_INT32_MAX_DIGITS = len(str(_INT32_MAX))


def classify_value(value: Any) -> FieldShape:
    """Classify a raw field value; no coercion is attempted."""
    if value is None:
        return FieldShape.ABSENT
    if isinstance(value, str):
        return FieldShape.STRING
    if isinstance(value, list):
        return FieldShape.RECORD_LIST
    return FieldShape.OTHER


@dataclass(frozen=True)
class ExtractedContact:
    contact_id: int
    tag_id: int
    membership_level: int
    labels: Optional[List[str]]
    training_error: Optional[ExtractionError] = None


class ContactFieldExtractor:
    """Pulls tag id, training labels and membership level out of a contact."""

    @staticmethod
    def find_field(contact: Contact, field_name: str) -> Optional[FieldValue]:
        """Return the first field with the given name, or None if the contact lacks it."""
        for field in contact.field_values:
            if field.field_name == field_name:
                return field
        return None

    @staticmethod
    def parse_tag_id(value: Any) -> int:
        shape = classify_value(value)
        if shape is FieldShape.ABSENT:
            return 0
        if shape is not FieldShape.STRING:
            raise ExtractionError("TagId value is not a string")

        # blank means no card issued yet, not malformed
        if value == "":
            return 0

        if not _TAG_ID_PATTERN.fullmatch(value):
            raise ExtractionError(f"TagId value {value!r} is not an integer")

        # int32 has at most 10 digits; also keeps huge strings away from int()
        if len(value.lstrip("+-").lstrip("0")) > _INT32_MAX_DIGITS:
            raise ExtractionError(f"TagId value {value[:16]!r}... is out of range")

        try:
            tag_id = int(value)
        except ValueError as e:
            raise ExtractionError(f"TagId value {value[:16]!r} is not an integer") from e
        if tag_id < _INT32_MIN or tag_id > _INT32_MAX:
            raise ExtractionError(f"TagId value {value!r} is out of range")
        if tag_id <= 0:
            raise ExtractionError("TagId value is non-positive")
        return tag_id

    @staticmethod
    def parse_training_labels(value: Any) -> List[str]:
        # a present field holding null is malformed, same as any other non-list
        if classify_value(value) is not FieldShape.RECORD_LIST:
            raise ExtractionError("training value is not a list")

        labels: List[str] = []
        for item in value:
            if not isinstance(item, dict):
                raise ExtractionError("training item is not a record")
            label = item.get("Label")
            if not isinstance(label, str):
                raise ExtractionError("training label is not a string")
            labels.append(label)
        return labels

    def extract_tag_id(self, contact: Contact, tag_field_name: str) -> int:
        """Tag id of the contact; 0 when the field is missing or blank."""
        field = self.find_field(contact, tag_field_name)
        if field is None:
            return 0
        return self.parse_tag_id(field.value)

    def extract_training_labels(self, contact: Contact, training_field_name: str) -> List[str]:
        """
        Training labels of the contact, in upstream order.
        All-or-nothing: one malformed item fails the whole list.
        """
        field = self.find_field(contact, training_field_name)
        if field is None:
            return []
        return self.parse_training_labels(field.value)

    @staticmethod
    def extract_membership_level(contact: Contact) -> int:
        level = contact.membership_level
        if level is None or level.id is None:
            return 0
        if isinstance(level.id, bool) or not isinstance(level.id, int):
            raise ExtractionError("MembershipLevel Id is not an integer")
        return level.id

    def extract_contact_data(
        self, contact: Contact, tag_field_name: str, training_field_name: str
    ) -> ExtractedContact:
        """
        Combine tag id, membership level and training extraction.

        Tag id and membership level errors are raised. A training error is
        returned on the result next to the tag id so the caller can decide
        what to do with the contact.
        """
        try:
            tag_id = self.extract_tag_id(contact, tag_field_name)
        except ExtractionError as e:
            raise ExtractionError(f"error extracting TagId for contact {contact.id}: {e}") from e

        try:
            membership_level = self.extract_membership_level(contact)
        except ExtractionError as e:
            raise ExtractionError(f"error extracting MembershipLevel for contact {contact.id}: {e}") from e

        labels: Optional[List[str]]
        training_error: Optional[ExtractionError] = None
        try:
            labels = self.extract_training_labels(contact, training_field_name)
        except ExtractionError as e:
            labels = None
            training_error = ExtractionError(
                f"error extracting training labels for contact {contact.id}: {e}"
            )

        return ExtractedContact(
            contact_id=contact.id,
            tag_id=tag_id,
            membership_level=membership_level,
            labels=labels,
            training_error=training_error,
        )
