"""site_kb.report: persisting and reading the knowledge-base document."""

from site_kb.report.json_report import (
    KnowledgeBaseWriteError,
    build_knowledge_base,
    load_knowledge_base,
    write_knowledge_base,
)

__all__ = [
    "KnowledgeBaseWriteError",
    "build_knowledge_base",
    "load_knowledge_base",
    "write_knowledge_base",
]
