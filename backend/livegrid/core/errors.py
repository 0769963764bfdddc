"""Exception hierarchy.

Every error carries the HTTP status the API should answer with; the
handler registered in ``livegrid.main`` renders them as
``{"success": false, "error": ..., "details": ...}``.
"""


class LiveGridError(Exception):
    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


# --------- Garmin LiveTrack --------- #

class UrlExpansionError(LiveGridError):
    status_code = 502


class UpstreamError(LiveGridError):
    """Non-2xx answer or transport failure talking to LiveTrack."""

    status_code = 502


class GraphQLQueryError(LiveGridError):
    """LiveTrack answered with an ``errors`` payload."""

    status_code = 422


class SessionNotFoundError(LiveGridError):
    status_code = 404


# --------- Share store --------- #

class ShareStoreError(LiveGridError):
    """Lookup or insert against the share table failed."""

    status_code = 500


class ShareIdCollisionError(ShareStoreError):
    """Insert hit the unique constraint on share_id."""


class ShareIdExhaustedError(ShareStoreError):
    pass


class ShareNotFoundError(LiveGridError):
    status_code = 404
