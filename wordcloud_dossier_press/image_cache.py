"""
Image compression with a content-addressed FIFO cache.
"""

# Standard Library
import asyncio
import base64
import binascii
import io
import logging
import zlib

# PIP3 modules
import PIL.Image

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.fifo_cache
import wordcloud_dossier_press.telemetry


PerformanceConfig = wdp.config.PerformanceConfig
FifoCache = wdp.fifo_cache.FifoCache

MAX_IMAGE_WIDTH = wdp.config.MAX_IMAGE_WIDTH
MAX_IMAGE_HEIGHT = wdp.config.MAX_IMAGE_HEIGHT
JPEG_START_QUALITY = wdp.config.JPEG_START_QUALITY
JPEG_QUALITY_STEP = wdp.config.JPEG_QUALITY_STEP
JPEG_MIN_QUALITY = wdp.config.JPEG_MIN_QUALITY
CACHE_KEY_PREFIX_LENGTH = wdp.config.CACHE_KEY_PREFIX_LENGTH

logger = logging.getLogger(__name__)


#============================================
def split_data_url(data_url: str) -> tuple[str, str]:
	"""
	Split a data URL into MIME type and base64 payload.

	Args:
		data_url: String like "data:image/png;base64,....". A bare base64
			string is accepted and reported as octet-stream.

	Returns:
		Tuple of (mime_type, payload).
	"""
	if not data_url.startswith("data:"):
		return ("application/octet-stream", data_url)
	header, _, payload = data_url.partition(",")
	mime_type = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
	return (mime_type, payload)


#============================================
def estimate_base64_size(data_url: str) -> int:
	"""
	Estimate decoded byte size from a base64 data URL.

	Args:
		data_url: Data URL or bare base64 string.

	Returns:
		Approximate byte count.
	"""
	_mime_type, payload = split_data_url(data_url)
	return int(round(len(payload) * 3 / 4))


#============================================
def encode_data_url(data: bytes, mime_type: str) -> str:
	"""
	Encode bytes as a base64 data URL.

	Args:
		data: Raw bytes.
		mime_type: MIME type for the header.

	Returns:
		Data URL string.
	"""
	payload = base64.b64encode(data).decode("ascii")
	return f"data:{mime_type};base64,{payload}"


#============================================
def decode_data_url(data_url: str) -> bytes:
	"""
	Decode a base64 data URL to bytes.

	Args:
		data_url: Data URL or bare base64 string.

	Returns:
		Raw bytes.
	"""
	_mime_type, payload = split_data_url(data_url)
	try:
		return base64.b64decode(payload, validate=True)
	except binascii.Error as error:
		raise ValueError(f"Invalid base64 image data: {error}") from error


#============================================
def compute_cache_key(filename: str, data_url: str) -> str:
	"""
	Build a cache key from the filename and a cheap content fingerprint.

	Args:
		filename: Image filename.
		data_url: Image data.

	Returns:
		Key of filename, CRC32 of the content prefix, and content length.
	"""
	prefix = data_url[:CACHE_KEY_PREFIX_LENGTH].encode("utf-8")
	return f"{filename}_{zlib.crc32(prefix)}_{len(data_url)}"


#============================================
def compute_target_dimensions(
	width: int,
	height: int,
	max_width: int = MAX_IMAGE_WIDTH,
	max_height: int = MAX_IMAGE_HEIGHT,
) -> tuple[int, int]:
	"""
	Downscale dimensions to fit a box, preserving aspect ratio.

	Args:
		width: Source width.
		height: Source height.
		max_width: Box width.
		max_height: Box height.

	Returns:
		Tuple of (width, height); never larger than the source.
	"""
	if width <= max_width and height <= max_height:
		return (width, height)
	ratio = min(max_width / width, max_height / height)
	return (max(1, int(round(width * ratio))), max(1, int(round(height * ratio))))


#============================================
def compress_image_data(data_url: str, max_bytes: int) -> tuple[str, int]:
	"""
	Resize and re-encode an image as JPEG until it fits the byte budget.

	Quality steps down linearly from the start quality and stops at the
	floor even if the budget is still exceeded.

	Args:
		data_url: Source image data URL.
		max_bytes: Target estimated size.

	Returns:
		Tuple of (jpeg data URL, final quality).
	"""
	raw = decode_data_url(data_url)
	with PIL.Image.open(io.BytesIO(raw)) as source:
		source.load()
		image = source
		if image.mode in ("RGBA", "LA", "P"):
			image = image.convert("RGBA")
			background = PIL.Image.new("RGB", image.size, (255, 255, 255))
			background.paste(image, mask=image.getchannel("A"))
			image = background
		elif image.mode != "RGB":
			image = image.convert("RGB")
		target_size = compute_target_dimensions(image.width, image.height)
		if target_size != image.size:
			image = image.resize(target_size, PIL.Image.LANCZOS)

		quality = JPEG_START_QUALITY
		while True:
			buffer = io.BytesIO()
			image.save(buffer, format="JPEG", quality=quality, optimize=True)
			encoded = encode_data_url(buffer.getvalue(), "image/jpeg")
			if estimate_base64_size(encoded) <= max_bytes or quality <= JPEG_MIN_QUALITY:
				return (encoded, quality)
			quality = max(JPEG_MIN_QUALITY, quality - JPEG_QUALITY_STEP)


class ImageOptimizationCache:
	"""
	Compresses image batches concurrently and caches the results.
	"""

	def __init__(self, config: PerformanceConfig | None = None) -> None:
		self.config = config or PerformanceConfig()
		self._cache: FifoCache[str, str] = FifoCache(self.config.image_cache_capacity, name="image cache")

	async def optimize(self, images: dict[str, str]) -> dict[str, str]:
		"""
		Compress every image in a batch, reusing cached results.

		Args:
			images: Mapping of filename to data URL.

		Returns:
			New mapping with one entry per usable input image. Images that
			fail to compress keep their original data.
		"""
		timer = wdp.telemetry.start_timer(f"Image compression for {len(images)} images")
		optimized: dict[str, str] = {}
		pending: list[tuple[str, str, str]] = []
		for filename, data_url in images.items():
			if not isinstance(data_url, str) or not data_url:
				logger.warning("Skipping image %s: data is not an encoded string", filename)
				continue
			cache_key = compute_cache_key(filename, data_url)
			cached = self._cache.get(cache_key)
			if cached is not None:
				optimized[filename] = cached
				continue
			pending.append((filename, data_url, cache_key))

		results = await asyncio.gather(
			*(self._compress_one(filename, data_url) for filename, data_url, _key in pending)
		)
		for (filename, data_url, cache_key), compressed in zip(pending, results):
			if compressed is None:
				optimized[filename] = data_url
				continue
			optimized[filename] = compressed
			self._cache.put(cache_key, compressed)

		timer.stop()
		# keep input order for callers that iterate
		return {filename: optimized[filename] for filename in images if filename in optimized}

	async def _compress_one(self, filename: str, data_url: str) -> str | None:
		original_size = estimate_base64_size(data_url)
		if original_size > self.config.max_image_size:
			logger.warning(
				"Large image detected: %s (%dKB), compressing",
				filename,
				original_size // 1024,
			)
		try:
			compressed, quality = await asyncio.to_thread(
				compress_image_data,
				data_url,
				self.config.max_image_size,
			)
		except Exception as error:
			logger.warning("Failed to compress image %s, using original: %s", filename, error)
			return None
		logger.debug(
			"Compressed %s: %d -> %d bytes at quality %d",
			filename,
			original_size,
			estimate_base64_size(compressed),
			quality,
		)
		return compressed

	def clear(self) -> None:
		self._cache.clear()
		logger.info("Image cache cleared")

	def stats(self) -> dict[str, int]:
		return {"entries": len(self._cache), "capacity": self._cache.capacity}
