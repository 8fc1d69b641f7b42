from .repair_request import RepairRequest

__all__ = ["RepairRequest"]
