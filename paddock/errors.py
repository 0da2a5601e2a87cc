"""
Exception taxonomy shared by the fetchers, the aggregation pipeline and the API.
"""


class PaddockError(Exception):
    """Base exception for the Paddock backend."""


class UpstreamError(PaddockError):
    """An upstream HTTP API could not supply usable data."""


class UpstreamUnavailable(UpstreamError):
    """Network failure, timeout or non-2xx response from an upstream API."""


class UpstreamMalformed(UpstreamError):
    """Upstream body was not JSON, or did not match the expected shape."""


class NoValidData(PaddockError):
    """Upstream answered, but nothing in the answer satisfies the computation."""


class NoValidLapError(NoValidData):
    """No lap qualifies as a reference lap for a telemetry trace."""


class NotFound(PaddockError):
    """The requested entity does not exist upstream."""


class InvalidRequest(PaddockError):
    """The caller asked for something that cannot be computed as stated."""
