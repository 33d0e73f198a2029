"""PodGroup construction, in-memory storage and resource arithmetic for gang-scheduled MPI jobs."""

__version__ = "0.6.0"
__all__ = ["models", "podgroup", "quantity", "resources", "version"]