"""Chatbot puppet building blocks: schemas, file boxes, events, message fixes and memory cards."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "events",
    "filebox",
    "helper",
    "log",
    "memory_card",
    "messages",
    "schemas",
    "storage",
]