# =======================================================================================
# app/services/reconcile_service.py - Upstream -> Store Reconciliation
# =======================================================================================
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import ValidationError
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from ..config import config
from ..database import DatabaseManager
from ..models.schemas import Contact, ContactFailure
from ..utils.exceptions import ExtractionError, PersistenceError
from ..utils.extractors import ContactFieldExtractor, ExtractedContact
from .member_repository import MemberRepository


@dataclass
class ReconcileResult:
    contacts_seen: int = 0
    members_upserted: int = 0
    links_written: int = 0
    contacts_skipped_no_tag: int = 0
    contacts_skipped_invalid: int = 0
    trainings_pruned: int = 0
    extraction_errors: List[ContactFailure] = field(default_factory=list)


class ReconciliationService:
    """Brings the members/trainings store in line with an upstream contact list."""

    def __init__(
        self,
        db: DatabaseManager,
        *,
        tag_field_name: Optional[str] = None,
        training_field_name: Optional[str] = None,
        extractor: Optional[ContactFieldExtractor] = None,
        repository: Optional[MemberRepository] = None,
    ) -> None:
        self.db = db
        self.tag_field_name = tag_field_name or config.TAG_ID_FIELD_NAME
        self.training_field_name = training_field_name or config.TRAINING_FIELD_NAME
        self.extractor = extractor or ContactFieldExtractor()
        self.repository = repository or MemberRepository()

    # ------------------------------------------------------------------
    # Per-contact
    # ------------------------------------------------------------------
    def _extract(self, raw: Dict[str, Any]) -> ExtractedContact:
        try:
            contact = Contact.model_validate(raw)
        except ValidationError as e:
            contact_id = raw.get("Id") if isinstance(raw, dict) else None
            raise ExtractionError(f"malformed contact record {contact_id}: {e.error_count()} errors") from e
        return self.extractor.extract_contact_data(
            contact, self.tag_field_name, self.training_field_name
        )

    def _apply(self, conn: Connection, data: ExtractedContact, result: ReconcileResult) -> None:
        repo = self.repository
        previous_tag = repo.get_member_tag(conn, data.contact_id)

        repo.upsert_member(conn, data.contact_id, data.tag_id, data.membership_level)
        result.members_upserted += 1

        if previous_tag not in (None, 0, data.tag_id):
            if not repo.tag_held_by_other(conn, previous_tag, data.contact_id):
                repo.delete_links(conn, previous_tag)
            logger.info(
                f"[reconcile] Contact {data.contact_id} moved from tag {previous_tag} to {data.tag_id}"
            )

        if data.labels is None:
            # keep the last good training set for this tag
            return
        result.links_written += repo.replace_links(conn, data.tag_id, data.labels)

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------
    def reconcile(self, contacts: List[Dict[str, Any]]) -> ReconcileResult:
        """
        Reconcile a full contact list inside one transaction.

        Contacts with a malformed tag id are skipped and reported; contacts
        without a tag are ignored. A database failure rolls everything back
        and raises PersistenceError.
        """
        result = ReconcileResult()

        try:
            with self.db.get_connection() as conn:
                for raw in contacts:
                    result.contacts_seen += 1
                    try:
                        data = self._extract(raw)
                    except ExtractionError as e:
                        contact_id = raw.get("Id") if isinstance(raw, dict) else None
                        logger.warning(f"[reconcile] Skipping contact: {e}")
                        result.contacts_skipped_invalid += 1
                        result.extraction_errors.append(
                            ContactFailure(contact_id=contact_id if isinstance(contact_id, int) else None,
                                           message=str(e))
                        )
                        continue

                    if data.training_error is not None:
                        logger.warning(f"[reconcile] {data.training_error}")
                        result.extraction_errors.append(
                            ContactFailure(contact_id=data.contact_id, message=str(data.training_error))
                        )

                    if data.tag_id == 0:
                        result.contacts_skipped_no_tag += 1
                        continue

                    self._apply(conn, data, result)

                result.trainings_pruned = self.repository.prune_unreferenced_trainings(conn)
        except SQLAlchemyError as e:
            raise PersistenceError(f"store update failed: {e}") from e

        logger.info(
            f"[reconcile] {result.contacts_seen} contacts, {result.members_upserted} members upserted, "
            f"{result.links_written} links, {len(result.extraction_errors)} extraction errors"
        )
        return result
