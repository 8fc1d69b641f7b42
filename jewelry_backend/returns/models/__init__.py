from .return_request import ExchangeItem, ReturnItem, ReturnRequest

__all__ = ["ReturnRequest", "ReturnItem", "ExchangeItem"]
