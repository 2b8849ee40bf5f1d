"""
Failure taxonomy and the bounded error log.
"""

# Standard Library
import dataclasses
import datetime
import enum
import logging

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config


ERROR_LOG_SIZE = wdp.config.ERROR_LOG_SIZE

logger = logging.getLogger(__name__)

DOCUMENT_LABELS = {
	"wordcloud": "Word Cloud",
	"dossier": "Dossier",
}


class ErrorKind(enum.Enum):
	VALIDATION = "validation"
	RESOURCE = "resource"
	TIMEOUT = "timeout"
	OUT_OF_MEMORY = "out_of_memory"
	RENDERER = "renderer"
	EMPTY_OUTPUT = "empty_output"


class DocumentError(Exception):
	"""
	Base class for every failure surfaced by document generation.

	Subclasses fix the kind; user_message carries the remedy text shown
	to a person.
	"""

	kind = ErrorKind.RENDERER

	def __init__(self, message: str, document_type: str | None = None) -> None:
		super().__init__(message)
		self.document_type = document_type

	@property
	def label(self) -> str:
		return DOCUMENT_LABELS.get(self.document_type or "", "Document")

	@property
	def user_message(self) -> str:
		return f"{self.label} generation failed. Please check your data and try again."


class InputValidationError(DocumentError):
	kind = ErrorKind.VALIDATION

	@property
	def user_message(self) -> str:
		return f"{self.label} input is invalid: {self}"


class ResourceError(DocumentError):
	kind = ErrorKind.RESOURCE

	@property
	def user_message(self) -> str:
		return "A font or image could not be loaded. Check your connection and try again."


class RenderTimeoutError(DocumentError):
	kind = ErrorKind.TIMEOUT

	@property
	def user_message(self) -> str:
		return (
			f"{self.label} generation timed out. This might be due to a large "
			"dataset or slow system. Please try again."
		)


class RenderMemoryError(DocumentError):
	kind = ErrorKind.OUT_OF_MEMORY

	@property
	def user_message(self) -> str:
		return (
			f"{self.label} generation failed due to memory constraints. "
			"Try reducing the dataset size or image quality."
		)


class RendererError(DocumentError):
	kind = ErrorKind.RENDERER


class EmptyRenderError(RendererError):
	kind = ErrorKind.EMPTY_OUTPUT

	@property
	def user_message(self) -> str:
		return f"{self.label} generation produced an empty document. Please try again."


@dataclasses.dataclass(frozen=True)
class ErrorLogEntry:
	timestamp: datetime.datetime
	context: str
	error: BaseException


class ErrorLog:
	"""
	Bounded in-memory log of failures, newest last.
	"""

	def __init__(self, max_size: int = ERROR_LOG_SIZE) -> None:
		self.max_size = max_size
		self._entries: list[ErrorLogEntry] = []

	def record(self, error: BaseException, context: str) -> None:
		"""
		Append a failure, dropping the oldest entries past the size limit.

		Args:
			error: The failure.
			context: Where it happened, e.g. "PDF Generation".
		"""
		self._entries.append(
			ErrorLogEntry(
				timestamp=datetime.datetime.now(datetime.timezone.utc),
				context=context,
				error=error,
			)
		)
		if len(self._entries) > self.max_size:
			self._entries = self._entries[-self.max_size:]
		logger.error("[%s] %s", context, error)

	def entries(self) -> list[ErrorLogEntry]:
		return list(self._entries)

	def stats(self) -> dict:
		by_context: dict[str, int] = {}
		for entry in self._entries:
			by_context[entry.context] = by_context.get(entry.context, 0) + 1
		return {"total": len(self._entries), "by_context": by_context}

	def clear(self) -> None:
		self._entries = []
