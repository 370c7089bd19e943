# File: barber_finder/errors.py

# --- Status Token Mapping ---
# Places API (New) reports google.rpc codes; the rest of the app speaks the
# legacy Maps status vocabulary.
NEW_API_STATUS_MAP = {
    "RESOURCE_EXHAUSTED": "OVER_QUERY_LIMIT",
    "PERMISSION_DENIED": "REQUEST_DENIED",
    "INVALID_ARGUMENT": "INVALID_REQUEST",
}

HTTP_STATUS_BY_TOKEN = {
    "OVER_QUERY_LIMIT": 429,
    "REQUEST_DENIED": 403,
    "INVALID_REQUEST": 400,
}


def map_new_api_status(status):
    """Translate a Places API (New) error status into the legacy token set."""
    if status is None:
        return None
    return NEW_API_STATUS_MAP.get(status, status)


def status_code_for(status):
    """HTTP status the request handler should answer with for a status token."""
    return HTTP_STATUS_BY_TOKEN.get(status, 500)


class UpstreamError(Exception):
    """
    A Google Maps Platform call failed.

    Attributes:
        message (str): Human readable reason (upstream error_message when given).
        status (str or None): Legacy status token, e.g. 'OVER_QUERY_LIMIT'.
        http_status (int or None): HTTP code of the failing response, if any.
        partial: SearchOutcome with whatever was aggregated before the failure.
                 Set by the orchestrator, None elsewhere.
    """

    def __init__(self, message, status=None, http_status=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.http_status = http_status
        self.partial = None

    @property
    def status_code(self):
        return status_code_for(self.status)

    def __repr__(self):
        return f"UpstreamError({self.message!r}, status={self.status!r})"


class ConfigError(Exception):
    """Required configuration (the API key) is missing."""
