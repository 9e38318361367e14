"""
Real-time order updates over Server-Sent Events.
"""
from orderboard.realtime.broadcast import BroadcastHub, Subscription
from orderboard.realtime.sse import event_stream, format_sse, sse_response

__all__ = ["BroadcastHub", "Subscription", "event_stream", "format_sse", "sse_response"]
