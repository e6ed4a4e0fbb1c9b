# =======================================================================================
# app/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .extractors import *

__all__ = [
    "RFIDAccessControlError", "ExtractionError", "FetchError", "PersistenceError",
    "BuildError", "CacheUnavailableError", "SyncInProgressError",
    "ContactFieldExtractor", "ExtractedContact", "classify_value"
]
