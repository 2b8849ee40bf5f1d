"""
Document generation orchestration: validation, resources, chunking, rendering.
"""

# Standard Library
import asyncio
import dataclasses
import datetime
import logging
import random
import typing

# PIP3 modules
import httpx

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.chunking
import wordcloud_dossier_press.config
import wordcloud_dossier_press.document
import wordcloud_dossier_press.errors
import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.image_cache
import wordcloud_dossier_press.layout
import wordcloud_dossier_press.records
import wordcloud_dossier_press.render
import wordcloud_dossier_press.telemetry
import wordcloud_dossier_press.word_layout


PerformanceConfig = wdp.config.PerformanceConfig
PageConfig = wdp.config.PageConfig
DocumentSpec = wdp.document.DocumentSpec
LayoutItem = wdp.layout.LayoutItem
Record = wdp.records.Record
ErrorLog = wdp.errors.ErrorLog
DocumentError = wdp.errors.DocumentError
InputValidationError = wdp.errors.InputValidationError
RenderTimeoutError = wdp.errors.RenderTimeoutError
RenderMemoryError = wdp.errors.RenderMemoryError
RendererError = wdp.errors.RendererError
EmptyRenderError = wdp.errors.EmptyRenderError
ImageOptimizationCache = wdp.image_cache.ImageOptimizationCache
FontAcquisitionService = wdp.fonts.FontAcquisitionService

Renderer = typing.Callable[[DocumentSpec], typing.Awaitable[bytes]]
Merger = typing.Callable[[list[bytes]], bytes]

WORD_CLOUD_CONTEXT = "Word Cloud Generation"
DOSSIER_CONTEXT = "Dossier Generation"

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class GeneratedDocument:
	data: bytes
	filename: str
	pages: int
	chunks: int


#============================================
def cap_items(items: list[LayoutItem], limit: int) -> list[LayoutItem]:
	"""
	Keep the largest items, preserving their original relative order.

	Args:
		items: Layout items.
		limit: Maximum count.

	Returns:
		At most limit items.
	"""
	if len(items) <= limit:
		return list(items)
	ranked = sorted(range(len(items)), key=lambda index: items[index].size, reverse=True)
	keep = set(ranked[:limit])
	return [item for index, item in enumerate(items) if index in keep]


class DocumentGenerator:
	"""
	Produces word cloud and dossier PDFs from validated input.

	Collaborators are injected; build_generator() wires the defaults.
	"""

	def __init__(
		self,
		config: PerformanceConfig | None = None,
		image_cache: ImageOptimizationCache | None = None,
		font_service: FontAcquisitionService | None = None,
		renderer: Renderer | None = None,
		error_log: ErrorLog | None = None,
		sleep: typing.Callable[[float], typing.Awaitable[None]] = asyncio.sleep,
		merger: Merger = wdp.render.merge_pdf_blobs,
	) -> None:
		self.config = config or PerformanceConfig()
		self.image_cache = image_cache or ImageOptimizationCache(self.config)
		self.font_service = font_service or FontAcquisitionService(self.config)
		self.renderer = renderer or wdp.render.ReportlabRenderer()
		self.error_log = error_log or ErrorLog()
		self.sleep = sleep
		self.merger = merger

	#============================================
	async def compose_word_cloud(
		self,
		records: list[Record],
		page_config: PageConfig,
		color_scheme: str = "color",
		rng: random.Random | None = None,
	) -> list[LayoutItem]:
		"""
		Build positioned word items from record words.

		Args:
			records: Validated records.
			page_config: Page used as the layout canvas.
			color_scheme: "color", "grayscale" or "black".
			rng: Random source for fonts, weights, rotation and colors.

		Returns:
			Positioned layout items.
		"""
		rng = rng or random.Random()
		frequency = wdp.word_layout.count_word_frequency(records)
		fonts = await self.font_service.preload_for_word_cloud(len(frequency))
		items = wdp.word_layout.build_word_items(frequency, fonts, rng)
		canvas = wdp.config.page_region(page_config)
		return wdp.word_layout.place_words(items, canvas, color_scheme, rng)

	#============================================
	async def generate_word_cloud(
		self,
		items: list[LayoutItem],
		page_config: PageConfig,
		filename: str = "word-cloud",
	) -> GeneratedDocument:
		"""
		Render positioned words onto a single page.

		Args:
			items: Layout items with center positions.
			page_config: Paper size and orientation.
			filename: Output filename.

		Returns:
			GeneratedDocument with one page.
		"""
		timer = wdp.telemetry.start_timer("Word cloud PDF generation")
		try:
			positioned = [item for item in items if wdp.layout.has_position(item)]
			if len(positioned) < len(items):
				logger.warning("Discarded %d words without a valid position", len(items) - len(positioned))
			if not positioned:
				raise InputValidationError("No positioned words to render", "wordcloud")
			capped = cap_items(positioned, self.config.max_word_cloud_items)
			if len(capped) < len(positioned):
				logger.warning(
					"Word cloud limited to %d of %d words",
					len(capped),
					len(positioned),
				)

			families = list(dict.fromkeys(item.font_family for item in capped))
			try:
				await self.font_service.load(families)
			except Exception as error:
				logger.warning("Font loading failed, using fallback fonts: %s", error)
			fonts = {
				family: self.font_service.resolve(family)
				for family in families
				if self.font_service.is_loaded(family)
			}

			region = wdp.config.page_region(page_config)
			scaled = wdp.layout.fit_items_to_page(capped, region)
			document = wdp.document.build_word_cloud_document(scaled, region, fonts)
			data = await self._render_with_timeout(document, self.config.word_cloud_timeout, "wordcloud")
		except DocumentError as error:
			self.error_log.record(error, WORD_CLOUD_CONTEXT)
			raise
		except Exception as error:
			wrapped = RendererError(str(error), "wordcloud")
			self.error_log.record(wrapped, WORD_CLOUD_CONTEXT)
			raise wrapped from error
		finally:
			timer.stop()
		return GeneratedDocument(
			data=data,
			filename=wdp.render.normalize_filename(filename),
			pages=len(document.pages),
			chunks=1,
		)

	#============================================
	async def generate_dossier(
		self,
		records: typing.Any,
		images: dict[str, str] | None,
		page_config: PageConfig,
		filename: str = "dossier",
	) -> GeneratedDocument:
		"""
		Render a paginated dossier, chunking large datasets.

		Args:
			records: Raw or parsed records; validated before any other work.
			images: Image data URLs by filename.
			page_config: Paper size and orientation.
			filename: Output filename.

		Returns:
			GeneratedDocument covering every chunk, or only the first chunk
			when merge_chunks is disabled.
		"""
		timer = wdp.telemetry.start_timer("Dossier PDF generation")
		try:
			validated = wdp.records.validate_records(records, self.config.max_dataset_size, "dossier")
			referenced = {record.picture for record in validated if record.picture}
			wanted = {name: data for name, data in (images or {}).items() if name in referenced}
			optimized = await self.image_cache.optimize(wanted)

			chunks = wdp.chunking.chunk_items(validated, self.config.pdf_chunk_size)
			items_per_page = wdp.document.compute_items_per_page(validated)
			total_pages = sum(wdp.document.count_pages(len(chunk), items_per_page) for chunk in chunks)
			generated_on = datetime.date.today()

			blobs: list[bytes] = []
			page_counts: list[int] = []
			page_offset = 0
			for index, chunk in enumerate(chunks):
				if index > 0:
					wdp.telemetry.sample_memory()
					await self.sleep(self.config.chunk_pause)
				if len(chunks) > 1:
					logger.info("Processing chunk %d/%d", index + 1, len(chunks))
				document = wdp.document.build_dossier_document(
					chunk,
					optimized,
					wdp.config.page_region(page_config),
					items_per_page,
					page_offset=page_offset,
					total_pages=total_pages,
					total_entries=len(validated),
					generated_on=generated_on,
				)
				blobs.append(
					await self._render_with_timeout(document, self.config.dossier_chunk_timeout, "dossier")
				)
				page_counts.append(len(document.pages))
				page_offset += len(document.pages)

			data, pages = await self._combine(blobs, page_counts)
		except DocumentError as error:
			self.error_log.record(error, DOSSIER_CONTEXT)
			raise
		except Exception as error:
			wrapped = RendererError(str(error), "dossier")
			self.error_log.record(wrapped, DOSSIER_CONTEXT)
			raise wrapped from error
		finally:
			timer.stop()
		return GeneratedDocument(
			data=data,
			filename=wdp.render.normalize_filename(filename),
			pages=pages,
			chunks=len(blobs),
		)

	#============================================
	async def _combine(self, blobs: list[bytes], page_counts: list[int]) -> tuple[bytes, int]:
		if len(blobs) == 1:
			return (blobs[0], page_counts[0])
		if not self.config.merge_chunks:
			logger.warning(
				"Chunk merging disabled: returning chunk 1 only, discarding chunks 2-%d",
				len(blobs),
			)
			return (blobs[0], page_counts[0])
		try:
			merged = await asyncio.to_thread(self.merger, blobs)
		except Exception as error:
			raise RendererError(f"Failed to merge {len(blobs)} chunks: {error}", "dossier") from error
		if not merged:
			raise EmptyRenderError("Chunk merge produced an empty document", "dossier")
		return (merged, sum(page_counts))

	#============================================
	async def _render_with_timeout(self, document: DocumentSpec, timeout: float, document_type: str) -> bytes:
		"""
		Render under a deadline and classify the outcome.

		Args:
			document: Document tree.
			timeout: Seconds allowed.
			document_type: "wordcloud" or "dossier".

		Returns:
			Non-empty PDF bytes.
		"""
		try:
			data = await asyncio.wait_for(self.renderer(document), timeout=timeout)
		except asyncio.TimeoutError as error:
			raise RenderTimeoutError(f"Rendering exceeded {timeout:g}s", document_type) from error
		except MemoryError as error:
			raise RenderMemoryError("Renderer ran out of memory", document_type) from error
		except DocumentError:
			raise
		except Exception as error:
			raise RendererError(f"Renderer failed: {error}", document_type) from error
		if not data:
			raise EmptyRenderError("Renderer returned an empty document", document_type)
		return data

	def stats(self) -> dict[str, dict]:
		return {
			"images": self.image_cache.stats(),
			"fonts": self.font_service.stats(),
			"errors": self.error_log.stats(),
		}


#============================================
def build_generator(
	config: PerformanceConfig | None = None,
	client: httpx.AsyncClient | None = None,
	rng: random.Random | None = None,
) -> DocumentGenerator:
	"""
	Wire a generator with the default collaborators.

	Args:
		config: Performance config.
		client: Optional shared HTTP client for font downloads.
		rng: Random source for font selection.

	Returns:
		DocumentGenerator.
	"""
	config = config or PerformanceConfig()
	return DocumentGenerator(
		config=config,
		image_cache=ImageOptimizationCache(config),
		font_service=FontAcquisitionService(config, client=client, rng=rng),
		renderer=wdp.render.ReportlabRenderer(),
		error_log=ErrorLog(),
	)
