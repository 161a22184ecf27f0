# Content Module
"""
Content-side collaborators of the synchronizer:

- Task Log (change notifications)
- Record Store (bulk record resolution)
- Document index handlers (record → document)
"""

from shiori.content.handlers import (
    BuildIndexContext,
    ContentFieldsIndexHandler,
    ContentItemIndexHandler,
    DocumentBuilder,
    DocumentIndexHandler,
    FullTextIndexHandler,
    create_default_builder,
)
from shiori.content.records import (
    InMemoryRecordStore,
    JsonRecordStore,
    RecordStoreProtocol,
)
from shiori.content.tasks import (
    InMemoryTaskLog,
    JsonLinesTaskLog,
    TaskLogProtocol,
)
from shiori.index.types import ContentRecord

__all__ = [
    # Handlers
    "BuildIndexContext",
    "ContentFieldsIndexHandler",
    "ContentItemIndexHandler",
    "DocumentBuilder",
    "DocumentIndexHandler",
    "FullTextIndexHandler",
    "create_default_builder",
    # Records
    "ContentRecord",
    "InMemoryRecordStore",
    "JsonRecordStore",
    "RecordStoreProtocol",
    # Tasks
    "InMemoryTaskLog",
    "JsonLinesTaskLog",
    "TaskLogProtocol",
]
