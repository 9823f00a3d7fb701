"""doctr-core: Orchestration core for batch document translation."""

from doctr_core.containers import ContainerLifecycleManager
from doctr_core.filtering import (
    expand_input_paths,
    extensions_from_formats,
    filter_by_extension,
    normalize_extension,
)
from doctr_core.glossary import (
    DEFAULT_GLOSSARY_FORMATS,
    GlossaryManager,
    resolve_glossary_format,
)
from doctr_core.naming import ResourceNamer
from doctr_core.orchestrator import (
    RunOrchestrator,
    TranslationRun,
    default_target_folder,
)
from doctr_core.polling import (
    PollResult,
    StatusPoller,
    classify_terminal_status,
    should_keep_polling,
)
from doctr_core.ports import (
    ArgumentError,
    ConfigurationError,
    LogSinkProtocol,
    OrchestrationError,
    RunEventSinkProtocol,
    StorageBackendProtocol,
    StorageError,
    SubmissionError,
    TerminalFailureError,
    TranslationBackendProtocol,
    TranslationServiceError,
)
from doctr_core.run_log import RunLogger, now_timestamp
from doctr_core.submission import JobSubmitter, resolve_source_language
from doctr_core.transfer import DownloadManager, UploadManager
from doctr_schemas.version import VERSION

__version__ = str(VERSION)

__all__ = [
    "DEFAULT_GLOSSARY_FORMATS",
    "VERSION",
    "ArgumentError",
    "ConfigurationError",
    "ContainerLifecycleManager",
    "DownloadManager",
    "GlossaryManager",
    "JobSubmitter",
    "LogSinkProtocol",
    "OrchestrationError",
    "PollResult",
    "ResourceNamer",
    "RunEventSinkProtocol",
    "RunLogger",
    "RunOrchestrator",
    "StatusPoller",
    "StorageBackendProtocol",
    "StorageError",
    "SubmissionError",
    "TerminalFailureError",
    "TranslationBackendProtocol",
    "TranslationRun",
    "TranslationServiceError",
    "UploadManager",
    "classify_terminal_status",
    "default_target_folder",
    "expand_input_paths",
    "extensions_from_formats",
    "filter_by_extension",
    "normalize_extension",
    "now_timestamp",
    "resolve_glossary_format",
    "resolve_source_language",
    "should_keep_polling",
]
