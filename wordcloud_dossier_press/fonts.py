"""
Web font acquisition with retry, timeout, failure memoization and fallbacks.
"""

# Standard Library
import asyncio
import dataclasses
import logging
import math
import random
import re
import typing
import urllib.parse

# PIP3 modules
import httpx

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.errors
import wordcloud_dossier_press.fifo_cache
import wordcloud_dossier_press.retry
import wordcloud_dossier_press.telemetry


PerformanceConfig = wdp.config.PerformanceConfig
FifoCache = wdp.fifo_cache.FifoCache
ResourceError = wdp.errors.ResourceError

FONT_RETRY_FACTOR = wdp.config.FONT_RETRY_FACTOR
MIN_WORD_CLOUD_FONTS = wdp.config.MIN_WORD_CLOUD_FONTS
WORDS_PER_FONT = wdp.config.WORDS_PER_FONT

GOOGLE_FONTS_CSS_URL = "https://fonts.googleapis.com/css2"
ESSENTIAL_WEIGHTS = (400, 700)
MAX_FALLBACK_WEIGHTS = 3

FONT_FACE_PATTERN = re.compile(r"@font-face\s*\{(?P<body>[^}]*)\}")
FONT_WEIGHT_PATTERN = re.compile(r"font-weight:\s*(?P<weight>\d+)")
FONT_SOURCE_PATTERN = re.compile(
	r"url\((?P<url>[^)]+)\)(?:\s*format\(['\"]?(?P<format>[\w-]+)['\"]?\))?"
)

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class FontDescriptor:
	family: str
	weights: tuple[int, ...]
	files: dict[int, bytes] = dataclasses.field(default_factory=dict, compare=False, repr=False)


WORD_CLOUD_FONTS = (
	FontDescriptor("Roboto", (300, 400, 500, 700, 900)),
	FontDescriptor("Open Sans", (300, 400, 600, 700, 800)),
	FontDescriptor("Lato", (300, 400, 700, 900)),
	FontDescriptor("Montserrat", (300, 400, 500, 600, 700, 800, 900)),
	FontDescriptor("Poppins", (300, 400, 500, 600, 700, 800, 900)),
	FontDescriptor("Source Sans Pro", (300, 400, 600, 700, 900)),
	FontDescriptor("Oswald", (300, 400, 500, 600, 700)),
	FontDescriptor("Raleway", (300, 400, 500, 600, 700, 800, 900)),
	FontDescriptor("Nunito", (300, 400, 600, 700, 800, 900)),
	FontDescriptor("Playfair Display", (400, 500, 600, 700, 800, 900)),
	FontDescriptor("Merriweather", (300, 400, 700, 900)),
	FontDescriptor("PT Sans", (400, 700)),
	FontDescriptor("Ubuntu", (300, 400, 500, 700)),
	FontDescriptor("Crimson Text", (400, 600, 700)),
	FontDescriptor("Libre Baskerville", (400, 700)),
)

FALLBACK_FONT_FAMILIES = ("Roboto", "Open Sans", "Lato")

# PDF standard fonts; always available to the renderer
SYSTEM_FONTS = (
	FontDescriptor("Helvetica", (400, 700)),
	FontDescriptor("Times-Roman", (400, 700)),
	FontDescriptor("Courier", (400, 700)),
)


#============================================
def compute_font_count(word_count: int, catalog_size: int) -> int:
	"""
	Number of font families to request for a word cloud.

	Args:
		word_count: Words in the cloud.
		catalog_size: Families available.

	Returns:
		ceil(word_count / 5), at least 3 and at most the catalog size.
	"""
	wanted = max(MIN_WORD_CLOUD_FONTS, math.ceil(word_count / WORDS_PER_FONT))
	return min(wanted, catalog_size)


#============================================
def select_essential_weights(weights: typing.Sequence[int]) -> tuple[int, ...]:
	"""
	Pick the weights worth downloading.

	Args:
		weights: Available weights.

	Returns:
		400 and 700 when present, otherwise the first three weights.
	"""
	essential = tuple(weight for weight in ESSENTIAL_WEIGHTS if weight in weights)
	if essential:
		return essential
	return tuple(weights[:MAX_FALLBACK_WEIGHTS])


#============================================
def build_stylesheet_url(family: str, weights: typing.Sequence[int]) -> str:
	"""
	Build a css2 stylesheet URL for a family.

	Args:
		family: Font family name.
		weights: Weights to request.

	Returns:
		Stylesheet URL.
	"""
	family_param = urllib.parse.quote_plus(family)
	weight_param = ";".join(str(weight) for weight in sorted(weights))
	return f"{GOOGLE_FONTS_CSS_URL}?family={family_param}:wght@{weight_param}&display=swap"


#============================================
def parse_stylesheet(css: str) -> dict[int, str]:
	"""
	Extract TrueType source URLs per weight from a font stylesheet.

	Args:
		css: Stylesheet text.

	Returns:
		Mapping of weight to font file URL; first TrueType source wins.
	"""
	sources: dict[int, str] = {}
	for match in FONT_FACE_PATTERN.finditer(css):
		body = match.group("body")
		weight_match = FONT_WEIGHT_PATTERN.search(body)
		weight = int(weight_match.group("weight")) if weight_match else 400
		for source in FONT_SOURCE_PATTERN.finditer(body):
			url = source.group("url").strip("'\" ")
			font_format = (source.group("format") or "").lower()
			if font_format == "truetype" or url.lower().endswith(".ttf"):
				sources.setdefault(weight, url)
				break
	return sources


class FontAcquisitionService:
	"""
	Resolves font families to loaded descriptors.

	A family is fetched at most once per session: success lands in the
	loaded set, exhausted retries land in the failed set, and neither is
	requested again until clear_cache().
	"""

	def __init__(
		self,
		config: PerformanceConfig | None = None,
		client: httpx.AsyncClient | None = None,
		rng: random.Random | None = None,
		sleep: typing.Callable[[float], typing.Awaitable[None]] = asyncio.sleep,
		catalog: typing.Sequence[FontDescriptor] = WORD_CLOUD_FONTS,
	) -> None:
		self.config = config or PerformanceConfig()
		self.client = client
		self.rng = rng or random.Random()
		self.sleep = sleep
		self.catalog = tuple(catalog)
		self._catalog_by_family = {font.family: font for font in self.catalog}
		self._system_by_family = {font.family: font for font in SYSTEM_FONTS}
		self._cache: FifoCache[str, FontDescriptor] = FifoCache(self.config.font_cache_size, name="font cache")
		self._loaded: set[str] = set()
		self._failed: set[str] = set()
		self._inflight: dict[str, asyncio.Future] = {}

	async def load(self, families: typing.Iterable[str]) -> None:
		"""
		Load font families, soft-failing per family.

		Args:
			families: Family names; already resolved names are skipped.
		"""
		pending: list[str] = []
		waiting: list[asyncio.Future] = []
		for family in families:
			if family in self._loaded or family in self._failed or family in pending:
				continue
			if family in self._system_by_family:
				self._loaded.add(family)
				continue
			inflight = self._inflight.get(family)
			if inflight is not None:
				if inflight not in waiting:
					waiting.append(inflight)
				continue
			pending.append(family)

		# claim pending families before the first suspension point
		loop = asyncio.get_running_loop()
		for family in pending:
			self._inflight[family] = loop.create_future()
		try:
			if pending:
				await self._acquire_all(pending)
		finally:
			for family in pending:
				future = self._inflight.pop(family)
				if not future.done():
					future.set_result(None)
		if waiting:
			# another load() owns these fetches
			await asyncio.gather(*(asyncio.shield(future) for future in waiting))

	async def _acquire_all(self, pending: list[str]) -> None:
		with wdp.telemetry.start_timer(f"Font loading for {len(pending)} families"):
			if self.client is not None:
				await asyncio.gather(*(self._acquire(self.client, family) for family in pending))
				return
			async with httpx.AsyncClient(timeout=self.config.font_timeout, follow_redirects=True) as client:
				await asyncio.gather(*(self._acquire(client, family) for family in pending))

	async def _acquire(self, client: httpx.AsyncClient, family: str) -> None:
		descriptor = self._catalog_by_family.get(family)
		if descriptor is None:
			logger.warning("Font family %r not found in available fonts", family)
			self._failed.add(family)
			return

		async def attempt() -> FontDescriptor:
			return await asyncio.wait_for(
				self._fetch_family(client, descriptor),
				timeout=self.config.font_timeout,
			)

		try:
			loaded = await wdp.retry.with_retry(
				attempt,
				max_attempts=self.config.font_retry_attempts,
				base_delay=self.config.font_retry_base_delay,
				factor=FONT_RETRY_FACTOR,
				context=f"Font load {family}",
				sleep=self.sleep,
			)
		except Exception as error:
			logger.warning("Font loading failed for %r, using fallback fonts: %s", family, error)
			self._failed.add(family)
			return
		self._loaded.add(family)
		self._cache.put(family, loaded)

	async def _fetch_family(self, client: httpx.AsyncClient, descriptor: FontDescriptor) -> FontDescriptor:
		weights = select_essential_weights(descriptor.weights)
		url = build_stylesheet_url(descriptor.family, weights)
		response = await client.get(url)
		response.raise_for_status()
		if "@font-face" not in response.text:
			raise ResourceError(f"Stylesheet for {descriptor.family} has no font faces")
		sources = parse_stylesheet(response.text)
		files: dict[int, bytes] = {}
		for weight, file_url in sorted(sources.items()):
			file_response = await client.get(file_url)
			file_response.raise_for_status()
			files[weight] = file_response.content
		return FontDescriptor(descriptor.family, weights, files)

	def random_font_combination(self, count: int) -> list[FontDescriptor]:
		"""
		Draw distinct catalog fonts without replacement.

		Args:
			count: Fonts wanted; capped at the catalog size.

		Returns:
			Selected descriptors.
		"""
		return self.rng.sample(list(self.catalog), min(count, len(self.catalog)))

	def random_weight(self, font: FontDescriptor) -> int:
		return self.rng.choice(font.weights)

	def resolve(self, family: str) -> FontDescriptor:
		"""
		Best descriptor for a loaded family: cached, catalog, or system.
		"""
		cached = self._cache.get(family)
		if cached is not None:
			return cached
		if family in self._catalog_by_family:
			return self._catalog_by_family[family]
		return self._system_by_family.get(family, FontDescriptor(family, ESSENTIAL_WEIGHTS))

	async def preload_for_word_cloud(self, word_count: int) -> list[FontDescriptor]:
		"""
		Load fonts for a word cloud, escalating through fallback tiers.

		Args:
			word_count: Number of words to render.

		Returns:
			Non-empty list of usable descriptors.
		"""
		count = compute_font_count(word_count, len(self.catalog))
		selected = [font.family for font in self.random_font_combination(count)]
		tiers = (
			("catalog selection", selected),
			("fallback set", list(FALLBACK_FONT_FAMILIES)),
		)
		for tier_name, families in tiers:
			try:
				await self.load(families)
			except Exception as error:
				logger.warning("Font tier %s failed: %s", tier_name, error)
			usable = [self.resolve(family) for family in families if family in self._loaded]
			if usable:
				logger.info("Using %d fonts from %s", len(usable), tier_name)
				return usable
			logger.warning("No fonts loaded from %s", tier_name)
		logger.warning("Falling back to system fonts")
		return list(SYSTEM_FONTS)

	def is_loaded(self, family: str) -> bool:
		return family in self._loaded

	def is_failed(self, family: str) -> bool:
		return family in self._failed

	def get_cached(self, family: str) -> FontDescriptor | None:
		return self._cache.get(family)

	def available_fonts(self) -> list[FontDescriptor]:
		return list(self.catalog)

	def clear_cache(self) -> None:
		self._cache.clear()
		self._loaded.clear()
		self._failed.clear()

	def stats(self) -> dict[str, int]:
		return {
			"cached": len(self._cache),
			"loaded": len(self._loaded),
			"failed": len(self._failed),
		}
