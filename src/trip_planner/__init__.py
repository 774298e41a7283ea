"""Trip itinerary planning client with remote route optimization."""

__version__ = "0.1.0"
