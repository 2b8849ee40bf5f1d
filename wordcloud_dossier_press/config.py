"""
Shared configuration and constants.
"""

import dataclasses


PAPER_SIZES = {
	"A4": (595.0, 842.0),
	"A3": (842.0, 1191.0),
}
ORIENTATIONS = ("portrait", "landscape")

DEFAULT_MAX_IMAGE_SIZE = 500 * 1024
DEFAULT_MAX_DATASET_SIZE = 1000
DEFAULT_FONT_CACHE_SIZE = 50
DEFAULT_PDF_CHUNK_SIZE = 100
DEFAULT_IMAGE_CACHE_CAPACITY = 100

MAX_IMAGE_WIDTH = 800
MAX_IMAGE_HEIGHT = 600
JPEG_START_QUALITY = 80
JPEG_QUALITY_STEP = 10
JPEG_MIN_QUALITY = 30
CACHE_KEY_PREFIX_LENGTH = 100

FONT_TIMEOUT = 5.0
FONT_RETRY_ATTEMPTS = 3
FONT_RETRY_BASE_DELAY = 1.0
FONT_RETRY_FACTOR = 1.5
MIN_WORD_CLOUD_FONTS = 3
WORDS_PER_FONT = 5

WORD_CLOUD_MARGIN = 50.0
WORD_CLOUD_MAX_ITEMS = 200
WORD_CLOUD_TIMEOUT = 30.0
TEXT_WIDTH_FACTOR = 0.6
MIN_SCALED_FONT_SIZE = 8.0
DEFAULT_TEXT_COLOR = "#333333"

DOSSIER_CHUNK_TIMEOUT = 60.0
DOSSIER_CHUNK_PAUSE = 0.1
SHORT_DESCRIPTION_LENGTH = 200
LONG_DESCRIPTION_LENGTH = 500
DESCRIPTION_TRUNCATE_LENGTH = 500
DOSSIER_PAGE_PADDING = 40.0
DOSSIER_TITLE = "Dossier"
MEMORY_WARNING_PERCENT = 80.0

ERROR_LOG_SIZE = 100

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"


@dataclasses.dataclass(frozen=True)
class PerformanceConfig:
	max_image_size: int = DEFAULT_MAX_IMAGE_SIZE
	max_dataset_size: int = DEFAULT_MAX_DATASET_SIZE
	font_cache_size: int = DEFAULT_FONT_CACHE_SIZE
	pdf_chunk_size: int = DEFAULT_PDF_CHUNK_SIZE
	image_cache_capacity: int = DEFAULT_IMAGE_CACHE_CAPACITY
	font_timeout: float = FONT_TIMEOUT
	font_retry_attempts: int = FONT_RETRY_ATTEMPTS
	font_retry_base_delay: float = FONT_RETRY_BASE_DELAY
	max_word_cloud_items: int = WORD_CLOUD_MAX_ITEMS
	word_cloud_timeout: float = WORD_CLOUD_TIMEOUT
	dossier_chunk_timeout: float = DOSSIER_CHUNK_TIMEOUT
	chunk_pause: float = DOSSIER_CHUNK_PAUSE
	merge_chunks: bool = True

	#============================================
	def updated(self, **overrides) -> "PerformanceConfig":
		"""
		Return a copy with the given fields replaced.

		Args:
			overrides: Field values; None values are ignored.

		Returns:
			New PerformanceConfig.
		"""
		changes = {key: value for key, value in overrides.items() if value is not None}
		return dataclasses.replace(self, **changes)


@dataclasses.dataclass(frozen=True)
class PageConfig:
	paper_size: str = "A4"
	orientation: str = "portrait"

	#============================================
	@classmethod
	def create(cls, paper_size: str, orientation: str) -> "PageConfig":
		"""
		Build a validated page config.

		Args:
			paper_size: Paper size name, e.g. "A4".
			orientation: "portrait" or "landscape".

		Returns:
			PageConfig.
		"""
		normalized_size = paper_size.strip().upper()
		normalized_orientation = orientation.strip().lower()
		if normalized_size not in PAPER_SIZES:
			raise ValueError(f"Unsupported paper size: {paper_size}")
		if normalized_orientation not in ORIENTATIONS:
			raise ValueError(f"Unsupported orientation: {orientation}")
		return cls(paper_size=normalized_size, orientation=normalized_orientation)


#============================================
def page_region(page_config: PageConfig) -> tuple[float, float]:
	"""
	Look up page dimensions in points.

	Args:
		page_config: Paper size and orientation.

	Returns:
		Tuple of (width, height).
	"""
	width, height = PAPER_SIZES[page_config.paper_size]
	if page_config.orientation == "landscape":
		return (height, width)
	return (width, height)
