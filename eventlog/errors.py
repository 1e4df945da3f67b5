"""Custom eventlog exceptions."""

class EventLogError(Exception):
    """Base eventlog error."""
    pass

class HandlerConfigError(EventLogError):
    """Handler could not be constructed (bad template, URL, dependency or socket)."""
    pass
