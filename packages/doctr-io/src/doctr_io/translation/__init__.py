"""Translation service adapters."""

from doctr_io.translation.document_translation import DocumentTranslationClient
from doctr_io.translation.memory import InMemoryTranslationBackend

__all__ = ["DocumentTranslationClient", "InMemoryTranslationBackend"]
