# Sync Module
"""
Incremental synchronization of full-text indices with the task log.
"""

from shiori.sync.orchestrator import SyncOrchestrator
from shiori.sync.scope import (
    FactoryScopeProvider,
    IndexingScope,
    ScopeProvider,
    StaticScopeProvider,
)
from shiori.sync.service import IndexingService, IndexStatus
from shiori.sync.types import PAGE_SIZE, ErrorPolicy, SyncResult

__all__ = [
    "PAGE_SIZE",
    "ErrorPolicy",
    "FactoryScopeProvider",
    "IndexingScope",
    "IndexingService",
    "IndexStatus",
    "ScopeProvider",
    "StaticScopeProvider",
    "SyncOrchestrator",
    "SyncResult",
]
