class TrackerError(Exception):
    """Base class for failures that end a tracking session."""


class LocationUnavailable(TrackerError):
    """The observer location could not be determined."""


class CatalogFetchFailure(TrackerError):
    """The element set catalog could not be downloaded."""
