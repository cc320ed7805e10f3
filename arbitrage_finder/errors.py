"""
Error Taxonomy
==============
Exceptions raised by the arbitrage finder pipeline. Each carries the HTTP
status the API layer answers with.
"""


class ArbitrageFinderError(Exception):
    """Base class for pipeline failures that map to a client-facing status."""
    status_code = 500


class InvalidRequestError(ArbitrageFinderError):
    """Missing parameter, unparsable body."""
    status_code = 400


class MethodNotAllowedError(ArbitrageFinderError):
    status_code = 405


class UnsupportedPlatformError(ArbitrageFinderError):
    """URL does not belong to Polymarket or Kalshi."""
    status_code = 400


class MalformedUrlError(ArbitrageFinderError):
    """URL belongs to a supported platform but has no usable slug/ticker."""
    status_code = 400


class SourceNotFoundError(ArbitrageFinderError):
    """Source event is absent or has no tradable markets."""
    status_code = 404


class InvalidAgentResponseError(ArbitrageFinderError):
    """AI analysis output could not be parsed as a JSON object."""
    status_code = 500
