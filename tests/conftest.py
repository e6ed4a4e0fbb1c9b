"""
Shared fixtures: a file-backed SQLite store per test and a fake contact source.
"""
from typing import Any, Dict, List, Optional

import pytest

from app.database import DatabaseManager
from app.services.cache_service import CacheBuilder, CacheStore
from app.services.reconcile_service import ReconciliationService
from app.services.sync_service import SyncService
from app.utils.exceptions import FetchError

TAG_FIELD = "TagId"
TRAINING_FIELD = "Safety Training"
ACCOUNT_ID = 12345


def make_contact(
    contact_id: int,
    tag: Any = None,
    trainings: Any = (),
    level: Optional[int] = 7,
    include_tag: bool = True,
    include_trainings: bool = True,
) -> Dict[str, Any]:
    """Build a raw Wild Apricot contact dict."""
    fields: List[Dict[str, Any]] = [{"FieldName": "First name", "Value": f"Member {contact_id}", "SystemCode": "FirstName"}]
    if include_tag:
        fields.append({"FieldName": TAG_FIELD, "Value": tag, "SystemCode": "custom-1"})
    if include_trainings:
        value = None if trainings is None else [
            {"Id": i, "Label": label} if isinstance(label, str) else label
            for i, label in enumerate(trainings)
        ]
        fields.append({"FieldName": TRAINING_FIELD, "Value": value, "SystemCode": "custom-2"})

    contact: Dict[str, Any] = {"Id": contact_id, "DisplayName": f"Member {contact_id}", "FieldValues": fields}
    if level is not None:
        contact["MembershipLevel"] = {"Id": level, "Name": f"Level {level}"}
    return contact


class FakeSource:
    """Stands in for WildApricotClient; returns whatever contacts it is given."""

    def __init__(self, contacts: Optional[List[Dict[str, Any]]] = None):
        self.contacts = contacts or []
        self.fail_with: Optional[Exception] = None
        self.calls = 0

    def get_contacts(self, account_id: int) -> List[Dict[str, Any]]:
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.contacts)

    def fail(self, message: str = "upstream unreachable"):
        self.fail_with = FetchError(message)


@pytest.fixture()
def db(tmp_path):
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'tags.db'}")
    manager.init_schema()
    yield manager
    manager.dispose()


@pytest.fixture()
def reconciler(db):
    return ReconciliationService(db, tag_field_name=TAG_FIELD, training_field_name=TRAINING_FIELD)


@pytest.fixture()
def builder(db):
    return CacheBuilder(db)


@pytest.fixture()
def source():
    return FakeSource()


@pytest.fixture()
def cache_store():
    return CacheStore()


@pytest.fixture()
def sync_service(source, reconciler, builder, cache_store):
    return SyncService(source, reconciler, builder, cache_store, account_id=ACCOUNT_ID)
