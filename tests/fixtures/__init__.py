"""
Pytest fixtures for the ReqGuard test suite.

Fixtures are organized by subsystem:
- http_mocking: recording MockTransport, echo handler, failing streams
- loopback_server: real loopback server with slow and stalled endpoints
"""
