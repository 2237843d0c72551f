# Integration Tests
"""
Integration tests verify complete product workflows through the HTTP API,
with a temporary database and a local blob store.
"""
