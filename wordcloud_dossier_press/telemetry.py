"""
Duration timers and memory sampling.
"""

# Standard Library
import dataclasses
import logging
import time

# PIP3 modules
import psutil

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config


MEMORY_WARNING_PERCENT = wdp.config.MEMORY_WARNING_PERCENT

logger = logging.getLogger(__name__)


class Timer:
	"""
	Start/stop timer that logs the elapsed time of an operation.

	Usable directly (start_timer(...).stop()) or as a context manager.
	"""

	def __init__(self, operation: str) -> None:
		self.operation = operation
		self.start_time = time.perf_counter()
		self.duration_ms: int | None = None
		logger.info("Starting %s", operation)

	def stop(self) -> int:
		"""
		Stop the timer.

		Returns:
			Elapsed milliseconds.
		"""
		elapsed = time.perf_counter() - self.start_time
		self.duration_ms = int(round(elapsed * 1000.0))
		logger.info("%s completed in %dms", self.operation, self.duration_ms)
		return self.duration_ms

	def __enter__(self) -> "Timer":
		return self

	def __exit__(self, exc_type, exc, tb) -> None:
		self.stop()


#============================================
def start_timer(operation: str) -> Timer:
	"""
	Start a named timer.

	Args:
		operation: Operation name for log lines.

	Returns:
		Running Timer.
	"""
	return Timer(operation)


@dataclasses.dataclass(frozen=True)
class MemorySnapshot:
	used: int
	total: int
	percentage: float


#============================================
def sample_memory() -> MemorySnapshot:
	"""
	Sample process and system memory, warning above the pressure threshold.

	Returns:
		MemorySnapshot with process RSS, system total, and system percent used.
	"""
	rss = psutil.Process().memory_info().rss
	system = psutil.virtual_memory()
	snapshot = MemorySnapshot(used=rss, total=system.total, percentage=system.percent)
	if snapshot.percentage > MEMORY_WARNING_PERCENT:
		logger.warning(
			"High memory usage detected: %.0f%% (%dMB used by process)",
			snapshot.percentage,
			rss // (1024 * 1024),
		)
	return snapshot
