# Infrastructure layer - database, storage, external services
"""
Infrastructure layer contains:
- Database connection pool
- Gallery repository
- Blob store adapters

This layer depends on the domain layer, not vice versa.
"""
