"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  Services talk
to the record store, blob store and identity provider only through
the adapters returned by ``core.backends`` so the storage backend can
be swapped without changing API handlers.
"""
