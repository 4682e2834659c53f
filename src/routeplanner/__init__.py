"""Customer route planner: column role inference, address geocoding and trip optimization."""

__version__ = "0.1.0"
