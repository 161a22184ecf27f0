# Index Module
"""
Index components for SHIORI.

Provides abstraction for different full-text index engines:
- In-memory (tests, embedding)
- LanceDB (local persistence)

And the per-index state the synchronizer owns (definitions, watermarks).
"""

from shiori.index.base import IndexEngine, IndexEngineProtocol
from shiori.index.document import DocumentField, DocumentIndex, FieldType
from shiori.index.memory import InMemoryIndexEngine
from shiori.index.registry import (
    IndexRegistryProtocol,
    InMemoryIndexRegistry,
    JsonIndexRegistry,
)
from shiori.index.types import (
    ContentRecord,
    IndexDefinition,
    IndexingTask,
    TaskKind,
    Watermark,
)
from shiori.index.watermark import WatermarkStore

__all__ = [
    # Engines
    "IndexEngine",
    "IndexEngineProtocol",
    "InMemoryIndexEngine",
    # Documents
    "DocumentField",
    "DocumentIndex",
    "FieldType",
    # Registry
    "IndexRegistryProtocol",
    "InMemoryIndexRegistry",
    "JsonIndexRegistry",
    # Types
    "ContentRecord",
    "IndexDefinition",
    "IndexingTask",
    "TaskKind",
    "Watermark",
    # Watermarks
    "WatermarkStore",
]

# LanceDB is optional
HAS_LANCEDB = False
try:
    from shiori.index.lancedb import LanceDBIndexEngine
    __all__.append("LanceDBIndexEngine")
    HAS_LANCEDB = True
except ImportError:
    LanceDBIndexEngine = None  # type: ignore

__all__.append("HAS_LANCEDB")
