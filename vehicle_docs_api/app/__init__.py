"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Each domain (vehicles, documents, history, statistics,
profile) exposes a router defined in ``api/v1/endpoints`` and keeps its
business logic in ``services``.  External collaborators (record store,
blob store, identity provider) live behind the adapters in ``core``.
"""

from .main import app  # noqa: F401
