from .status_history import StatusHistoryEntry

__all__ = ["StatusHistoryEntry"]
