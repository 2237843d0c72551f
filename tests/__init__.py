# Product Gallery Test Suite
"""
Tests for the product gallery.

- test_services: synchronizer workflows against mocked stores
- test_async_repositories: gallery repository on a temporary SQLite file
- unit/: blob store backends and logging setup
- integration/: the HTTP API end to end
"""
