"""
Insertion-ordered cache with first-in first-out eviction.
"""

# Standard Library
import logging
import typing


logger = logging.getLogger(__name__)

K = typing.TypeVar("K")
V = typing.TypeVar("V")


class FifoCache(typing.Generic[K, V]):
	"""
	Bounded mapping that evicts the oldest inserted keys.

	Reads do not refresh an entry, and overwriting an existing key keeps
	its original position.
	"""

	def __init__(self, capacity: int, name: str = "cache") -> None:
		if capacity < 0:
			raise ValueError("capacity must be non-negative")
		self.capacity = capacity
		self.name = name
		self._entries: dict[K, V] = {}

	def get(self, key: K) -> V | None:
		return self._entries.get(key)

	def put(self, key: K, value: V) -> list[K]:
		"""
		Insert a value and evict down to capacity.

		Args:
			key: Cache key.
			value: Cached value.

		Returns:
			Keys evicted by this insert, oldest first.
		"""
		self._entries[key] = value
		return self.evict_to_capacity()

	def evict_to_capacity(self) -> list[K]:
		overflow = len(self._entries) - self.capacity
		if overflow <= 0:
			return []
		evicted = list(self._entries)[:overflow]
		for key in evicted:
			del self._entries[key]
		logger.debug("%s evicted %d entries", self.name, len(evicted))
		return evicted

	def keys(self) -> list[K]:
		return list(self._entries)

	def clear(self) -> None:
		self._entries.clear()

	def __contains__(self, key: object) -> bool:
		return key in self._entries

	def __len__(self) -> int:
		return len(self._entries)
