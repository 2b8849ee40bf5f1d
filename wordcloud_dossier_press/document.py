"""
Declarative document trees for the word cloud and dossier layouts.

Coordinates use a top-left origin in points; the renderer flips them.
"""

# Standard Library
import dataclasses
import datetime
import math

# PIP3 modules
import reportlab.pdfbase.pdfmetrics

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.layout
import wordcloud_dossier_press.records


PageConfig = wdp.config.PageConfig
FontDescriptor = wdp.fonts.FontDescriptor
LayoutItem = wdp.layout.LayoutItem
Record = wdp.records.Record

DEFAULT_FONT_REGULAR = wdp.config.DEFAULT_FONT_REGULAR
DEFAULT_TEXT_COLOR = wdp.config.DEFAULT_TEXT_COLOR
SHORT_DESCRIPTION_LENGTH = wdp.config.SHORT_DESCRIPTION_LENGTH
LONG_DESCRIPTION_LENGTH = wdp.config.LONG_DESCRIPTION_LENGTH
DESCRIPTION_TRUNCATE_LENGTH = wdp.config.DESCRIPTION_TRUNCATE_LENGTH
DOSSIER_PAGE_PADDING = wdp.config.DOSSIER_PAGE_PADDING
DOSSIER_TITLE = wdp.config.DOSSIER_TITLE

HEADER_HEIGHT = 50.0
FOOTER_HEIGHT = 30.0
IMAGE_COLUMN_WIDTH = 150.0
COLUMN_GAP = 15.0
NAME_SIZE = 16.0
LABEL_SIZE = 9.0
WORD_SIZE = 13.0
DESCRIPTION_SIZE = 10.0
LINE_SPACING = 1.3
RULE_COLOR = "#333333"
SEPARATOR_COLOR = "#CCCCCC"
MUTED_COLOR = "#666666"
PLACEHOLDER_FILL = "#F3F4F6"


@dataclasses.dataclass(frozen=True)
class TextNode:
	x: float
	y: float
	text: str
	font_family: str = DEFAULT_FONT_REGULAR
	size: float = 10.0
	weight: int = 400
	color: str = DEFAULT_TEXT_COLOR
	anchor: str = "start"
	rotation: float = 0.0
	# when set, y is the vertical center instead of the baseline
	center_vertically: bool = False


@dataclasses.dataclass(frozen=True)
class ImageNode:
	x: float
	y: float
	width: float
	height: float
	data_url: str


@dataclasses.dataclass(frozen=True)
class RectNode:
	x: float
	y: float
	width: float
	height: float
	fill_color: str | None = None
	stroke_color: str | None = None
	line_width: float = 0.5


@dataclasses.dataclass
class PageSpec:
	width: float
	height: float
	nodes: list = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class DocumentSpec:
	title: str
	pages: list[PageSpec]
	fonts: dict[str, FontDescriptor] = dataclasses.field(default_factory=dict)


#============================================
def compute_items_per_page(records: list[Record]) -> int:
	"""
	Dossier density from mean description length.

	Args:
		records: Records to lay out.

	Returns:
		3 for short text, 2 for medium text, 1 for long text.
	"""
	mean_length = wdp.records.mean_description_length(records)
	if mean_length < SHORT_DESCRIPTION_LENGTH:
		return 3
	if mean_length < LONG_DESCRIPTION_LENGTH:
		return 2
	return 1


#============================================
def count_pages(item_count: int, items_per_page: int) -> int:
	return math.ceil(item_count / items_per_page) if item_count > 0 else 0


#============================================
def wrap_text_to_width(text: str, font_name: str, font_size: float, max_width: float) -> list[str]:
	"""
	Wrap text to fit within a max width.

	Args:
		text: Input text.
		font_name: Font name for width calculation.
		font_size: Font size for width calculation.
		max_width: Maximum line width in points.

	Returns:
		Wrapped lines.
	"""
	words = text.split()
	lines: list[str] = []
	current = ""
	for word in words:
		candidate = word if not current else f"{current} {word}"
		width = reportlab.pdfbase.pdfmetrics.stringWidth(candidate, font_name, font_size)
		if width <= max_width or not current:
			current = candidate
			continue
		lines.append(current)
		current = word
	if current:
		lines.append(current)
	return lines


#============================================
def truncate_description(text: str) -> str:
	if len(text) > DESCRIPTION_TRUNCATE_LENGTH:
		return f"{text[:DESCRIPTION_TRUNCATE_LENGTH]}..."
	return text


#============================================
def build_word_cloud_document(
	items: list[LayoutItem],
	page_size: tuple[float, float],
	fonts: dict[str, FontDescriptor] | None = None,
	title: str = "Word Cloud",
) -> DocumentSpec:
	"""
	Build a single-page document of positioned words.

	Args:
		items: Scaled layout items with center positions.
		page_size: Page (width, height).
		fonts: Loaded font descriptors by family.
		title: Document title.

	Returns:
		DocumentSpec.
	"""
	page = PageSpec(width=page_size[0], height=page_size[1])
	for item in items:
		page.nodes.append(
			TextNode(
				x=item.x,
				y=item.y,
				text=item.text,
				font_family=item.font_family,
				size=item.size,
				weight=item.weight,
				color=item.color or DEFAULT_TEXT_COLOR,
				anchor="middle",
				rotation=item.rotation,
				center_vertically=True,
			)
		)
	return DocumentSpec(title=title, pages=[page], fonts=dict(fonts or {}))


#============================================
def _build_entry_nodes(
	record: Record,
	images: dict[str, str],
	left: float,
	top: float,
	width: float,
	height: float,
) -> list:
	nodes: list = []
	cursor = top + NAME_SIZE
	nodes.append(TextNode(left, cursor, record.person, size=NAME_SIZE, weight=700, color=RULE_COLOR))
	cursor += NAME_SIZE * 0.6

	text_width = width
	if record.picture:
		text_width = width - IMAGE_COLUMN_WIDTH - COLUMN_GAP
		image_left = left + width - IMAGE_COLUMN_WIDTH
		image_top = cursor
		image_height = min(IMAGE_COLUMN_WIDTH, max(0.0, top + height - image_top - 10.0))
		image_data = images.get(record.picture)
		if image_data and image_data.startswith("data:image/"):
			nodes.append(ImageNode(image_left, image_top, IMAGE_COLUMN_WIDTH, image_height, image_data))
		else:
			nodes.append(
				RectNode(
					image_left,
					image_top,
					IMAGE_COLUMN_WIDTH,
					image_height,
					fill_color=PLACEHOLDER_FILL,
					stroke_color=SEPARATOR_COLOR,
				)
			)
			center_x = image_left + IMAGE_COLUMN_WIDTH / 2.0
			center_y = image_top + image_height / 2.0
			nodes.append(TextNode(center_x, center_y, record.picture, size=9.0, color=MUTED_COLOR, anchor="middle"))
			nodes.append(TextNode(center_x, center_y + 12.0, "Image not found", size=8.0, color=MUTED_COLOR, anchor="middle"))

	cursor += LABEL_SIZE + 4.0
	nodes.append(TextNode(left, cursor, "Word:", size=LABEL_SIZE, weight=700, color=MUTED_COLOR))
	cursor += WORD_SIZE * LINE_SPACING
	nodes.append(TextNode(left, cursor, record.word, size=WORD_SIZE, color=RULE_COLOR))

	if record.description and record.description.strip():
		cursor += LABEL_SIZE + 8.0
		nodes.append(TextNode(left, cursor, "Description:", size=LABEL_SIZE, weight=700, color=MUTED_COLOR))
		leading = DESCRIPTION_SIZE * LINE_SPACING
		lines = wrap_text_to_width(
			truncate_description(record.description),
			DEFAULT_FONT_REGULAR,
			DESCRIPTION_SIZE,
			text_width,
		)
		bottom = top + height - 8.0
		for line in lines:
			if cursor + leading > bottom:
				break
			cursor += leading
			nodes.append(TextNode(left, cursor, line, size=DESCRIPTION_SIZE))
	return nodes


#============================================
def build_dossier_document(
	records: list[Record],
	images: dict[str, str],
	page_size: tuple[float, float],
	items_per_page: int,
	page_offset: int = 0,
	total_pages: int | None = None,
	total_entries: int | None = None,
	generated_on: datetime.date | None = None,
) -> DocumentSpec:
	"""
	Build dossier pages for a run of records.

	Args:
		records: Records for this document (or chunk).
		images: Optimized images by filename.
		page_size: Page (width, height).
		items_per_page: Entries per page.
		page_offset: Pages already emitted by earlier chunks.
		total_pages: Page count of the whole dossier.
		total_entries: Entry count of the whole dossier.
		generated_on: Date printed in the footer.

	Returns:
		DocumentSpec.
	"""
	page_width, page_height = page_size
	pages_here = count_pages(len(records), items_per_page)
	if total_pages is None:
		total_pages = page_offset + pages_here
	if total_entries is None:
		total_entries = len(records)
	if generated_on is None:
		generated_on = datetime.date.today()

	left = DOSSIER_PAGE_PADDING
	content_width = page_width - 2.0 * DOSSIER_PAGE_PADDING
	content_top = DOSSIER_PAGE_PADDING + HEADER_HEIGHT
	content_height = page_height - 2.0 * DOSSIER_PAGE_PADDING - HEADER_HEIGHT - FOOTER_HEIGHT
	slot_height = content_height / items_per_page
	footer = f"Generated on {generated_on.isoformat()} - Total entries: {total_entries}"

	pages: list[PageSpec] = []
	for page_index in range(pages_here):
		page = PageSpec(width=page_width, height=page_height)
		header_baseline = DOSSIER_PAGE_PADDING + 24.0
		page.nodes.append(TextNode(left, header_baseline, DOSSIER_TITLE, size=24.0, weight=700, color=RULE_COLOR))
		page.nodes.append(
			TextNode(
				left + content_width,
				header_baseline,
				f"Page {page_offset + page_index + 1} of {total_pages}",
				size=12.0,
				color=MUTED_COLOR,
				anchor="end",
			)
		)
		page.nodes.append(RectNode(left, header_baseline + 10.0, content_width, 2.0, fill_color=RULE_COLOR))

		page_records = records[page_index * items_per_page:(page_index + 1) * items_per_page]
		for slot, record in enumerate(page_records):
			slot_top = content_top + slot * slot_height
			page.nodes.extend(_build_entry_nodes(record, images, left, slot_top, content_width, slot_height))
			if slot < len(page_records) - 1:
				page.nodes.append(
					RectNode(left, slot_top + slot_height - 1.0, content_width, 0.75, fill_color=SEPARATOR_COLOR)
				)

		page.nodes.append(
			TextNode(
				page_width / 2.0,
				page_height - DOSSIER_PAGE_PADDING,
				footer,
				size=8.0,
				color=MUTED_COLOR,
				anchor="middle",
			)
		)
		pages.append(page)
	return DocumentSpec(title=DOSSIER_TITLE, pages=pages)
