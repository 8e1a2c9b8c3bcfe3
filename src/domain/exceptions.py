"""
Domain exceptions for the heatmap system.

Implements a hierarchy distinguishing between recoverable runtime errors
(network glitches, temporary data unavailability) and fatal errors
(configuration issues, unreadable catalog) that stop the process.

Navigation problems (a click on a tile while already zoomed in, a back
press on the overview, a zoomed group vanishing after a refresh) are NOT
exceptions. The state machine absorbs them as no-ops or fallbacks.
"""


class HeatmapError(Exception):
    """Base class for all heatmap domain exceptions."""
    pass


class RecoverableError(HeatmapError):
    """
    Errors that the system can recover from without restarting.

    Examples:
    - Quote endpoint unreachable or rate limited
    - Empty quote payload
    - AUM provider temporarily unavailable
    """
    pass


class FatalError(HeatmapError):
    """
    Critical errors requiring operator intervention.

    Examples:
    - Invalid configuration
    - Missing or malformed ETF catalog
    """
    pass


class DataUnavailableError(RecoverableError):
    """No usable dataset could be obtained for rendering."""
    pass


class QuoteFetchError(DataUnavailableError):
    """Fetching live quotes failed for every batch."""
    pass


class ConfigurationError(FatalError):
    """Invalid system configuration."""
    pass


class CatalogError(FatalError):
    """ETF catalog file missing or malformed."""
    pass
