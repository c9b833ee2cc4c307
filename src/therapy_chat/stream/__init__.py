"""Stream module for session event notifications."""

from .redis import EventStream, SESSION_MESSAGE_EVENT, event_stream, get_event_stream

__all__ = ["EventStream", "SESSION_MESSAGE_EVENT", "event_stream", "get_event_stream"]
