# =======================================================================================
# app/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class RFIDAccessControlError(Exception):
    """Base exception for RFID access control system."""
    pass

class ExtractionError(RFIDAccessControlError):
    """Raised when a contact field has an unexpected shape or value."""
    pass

class FetchError(RFIDAccessControlError):
    """Raised when the upstream directory is unreachable or rejects a request."""
    pass

class PersistenceError(RFIDAccessControlError):
    """Raised when writing reconciled state to the store fails."""
    pass

class BuildError(RFIDAccessControlError):
    """Raised when the store contents cannot form a consistent cache snapshot."""
    pass

class CacheUnavailableError(RFIDAccessControlError):
    """Raised when no snapshot has been published yet."""
    pass

class SyncInProgressError(RFIDAccessControlError):
    """Raised when a sync cycle is requested while another one is running."""
    pass
