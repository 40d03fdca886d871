"""
Telemetry Hub - Services

Business logic over the shared store. Every service works on the session
it is given; nothing is cached between calls.
"""
