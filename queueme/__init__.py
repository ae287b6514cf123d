"""Walk-in customer queue: admission control, ordering and staff actions."""

__version__ = "0.1.0"
