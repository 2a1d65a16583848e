"""Exception hierarchy for sense-ingest."""


class IngestError(Exception):
    """Base class for all sense-ingest errors."""


class FetchError(IngestError):
    """Network call failed or returned a non-success status."""


class DecodeError(IngestError):
    """Payload could not be parsed into the expected shape."""


class SinkError(IngestError):
    """Persistence sink could not store a reading."""


class StartupError(IngestError):
    """Fatal condition during bootstrap (config, credentials, adapter, storage)."""
