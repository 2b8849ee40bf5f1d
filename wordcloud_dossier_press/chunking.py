"""
Dataset chunking for bounded-memory batch rendering.
"""

# Standard Library
import logging
import typing


logger = logging.getLogger(__name__)

T = typing.TypeVar("T")


#============================================
def chunk_items(items: typing.Sequence[T], size: int) -> list[list[T]]:
	"""
	Split a sequence into consecutive chunks.

	Args:
		items: Ordered items.
		size: Maximum chunk length.

	Returns:
		One chunk when the sequence fits, otherwise chunks of exactly size
		items with the remainder last.
	"""
	if size < 1:
		raise ValueError("chunk size must be at least 1")
	if len(items) <= size:
		return [list(items)]
	chunks = [list(items[start:start + size]) for start in range(0, len(items), size)]
	logger.info("Dataset chunked into %d chunks of up to %d items", len(chunks), size)
	return chunks
