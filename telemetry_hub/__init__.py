"""
Telemetry Hub

Collects log lines from reporting nodes, hands queued commands back to
them exactly once, and serves the accumulated logs to collectors.
"""

__version__ = "1.0.0"
