# =======================================================================================
# app/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

SyncStatus = Literal["SUCCESS", "FAILED", "SKIPPED", "NEVER_RUN"]

class FieldShape(Enum):
    """Runtime shape of a contact field value."""
    ABSENT = "absent"
    STRING = "string"
    RECORD_LIST = "record_list"
    OTHER = "other"
