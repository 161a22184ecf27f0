# SHIORI - Incremental Full-Text Index Synchronizer
"""
SHIORI: Incremental full-text index synchronization

Keeps a set of named full-text indices consistent with a shared,
append-only log of indexing tasks, using one watermark per index.
"""

__version__ = "0.1.0"
__author__ = "SHIORI Team"

__all__ = [
    "__version__",
    # Service
    "IndexingService",
    "SyncOrchestrator",
    "SyncResult",
    "create_indexing_service",
    # Types
    "IndexDefinition",
    "IndexingTask",
    "TaskKind",
    "ContentRecord",
]


# Lazy imports for public API
def __getattr__(name):
    """Lazy import for public API."""
    if name in ("IndexingService", "SyncOrchestrator", "SyncResult"):
        from shiori.sync import IndexingService, SyncOrchestrator, SyncResult

        return {
            "IndexingService": IndexingService,
            "SyncOrchestrator": SyncOrchestrator,
            "SyncResult": SyncResult,
        }[name]
    if name == "create_indexing_service":
        from shiori.api.factory import create_indexing_service

        return create_indexing_service
    if name in ("IndexDefinition", "IndexingTask", "TaskKind", "ContentRecord"):
        from shiori.index import types

        return getattr(types, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
