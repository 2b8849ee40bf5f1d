"""
Retry with exponential backoff for async operations.
"""

# Standard Library
import asyncio
import logging
import typing


logger = logging.getLogger(__name__)

T = typing.TypeVar("T")


#============================================
async def with_retry(
	operation: typing.Callable[[], typing.Awaitable[T]],
	max_attempts: int = 3,
	base_delay: float = 1.0,
	factor: float = 1.5,
	context: str = "operation",
	sleep: typing.Callable[[float], typing.Awaitable[None]] = asyncio.sleep,
) -> T:
	"""
	Run an async operation, retrying on failure with a growing delay.

	Each attempt calls the factory again, so any timeout inside it
	starts fresh.

	Args:
		operation: Zero-argument callable returning a new awaitable.
		max_attempts: Total attempts including the first.
		base_delay: Seconds to wait before the second attempt.
		factor: Multiplier applied to the delay after each failed attempt.
		context: Name used in log lines.
		sleep: Coroutine used to wait between attempts.

	Returns:
		The operation result.
	"""
	if max_attempts < 1:
		raise ValueError("max_attempts must be at least 1")
	delay = base_delay
	for attempt in range(1, max_attempts + 1):
		try:
			return await operation()
		except Exception as error:
			if attempt == max_attempts:
				logger.warning("%s failed after %d attempts: %s", context, attempt, error)
				raise
			logger.info(
				"%s attempt %d failed, retrying in %.2fs: %s",
				context,
				attempt,
				delay,
				error,
			)
			await sleep(delay)
			delay *= factor
	raise AssertionError("unreachable")
