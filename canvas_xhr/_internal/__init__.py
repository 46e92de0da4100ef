"""Internal modules for canvas-xhr.

WARNING: This package contains system-level modules used by HttpClient.
These are not intended for direct use in application code.

Modules:
    dispatch - Pending/completed queues and the network worker
    transport - Synchronous HTTP transports
    http - Shared HTTP client configuration
"""
