"""
Rendering of document trees to PDF and combination of chunk PDFs.
"""

# Standard Library
import asyncio
import io
import logging

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfbase.ttfonts
import reportlab.pdfgen.canvas

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.document
import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.image_cache


DocumentSpec = wdp.document.DocumentSpec
PageSpec = wdp.document.PageSpec
TextNode = wdp.document.TextNode
ImageNode = wdp.document.ImageNode
RectNode = wdp.document.RectNode
FontDescriptor = wdp.fonts.FontDescriptor

DEFAULT_FONT_REGULAR = wdp.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = wdp.config.DEFAULT_FONT_BOLD

# bold variants of the PDF standard fonts
STANDARD_BOLD_FONTS = {
	"Helvetica": "Helvetica-Bold",
	"Times-Roman": "Times-Bold",
	"Courier": "Courier-Bold",
}
# baseline shift, as a fraction of size, that centers cap height on y
VERTICAL_CENTER_SHIFT = 0.35

logger = logging.getLogger(__name__)


#============================================
def parse_hex_color(value: str | None) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC" or "#ABC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range; black when unparseable.
	"""
	if not value or not value.startswith("#"):
		return (0.0, 0.0, 0.0)
	digits = value[1:]
	if len(digits) == 3:
		digits = "".join(char * 2 for char in digits)
	if len(digits) != 6:
		return (0.0, 0.0, 0.0)
	try:
		red = int(digits[0:2], 16) / 255.0
		green = int(digits[2:4], 16) / 255.0
		blue = int(digits[4:6], 16) / 255.0
	except ValueError:
		return (0.0, 0.0, 0.0)
	return (red, green, blue)


#============================================
def sanitize_token(value: str) -> str:
	"""
	Sanitize a string for filenames and font names.

	Args:
		value: Input string.

	Returns:
		Sanitized string.
	"""
	result: list[str] = []
	for char in value:
		if char.isalnum() or char == "-":
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result).strip("_")
	if not sanitized:
		return "document"
	return sanitized


#============================================
def normalize_filename(name: str) -> str:
	"""
	Ensure a download filename ends in .pdf.

	Args:
		name: Requested filename.

	Returns:
		Filename with a .pdf extension.
	"""
	if name.lower().endswith(".pdf"):
		return name
	return f"{name}.pdf"


#============================================
def nearest_weight(weights: list[int], weight: int) -> int:
	return min(weights, key=lambda candidate: (abs(candidate - weight), candidate))


#============================================
def register_font_files(font: FontDescriptor) -> dict[int, str]:
	"""
	Register downloaded TrueType files with reportlab.

	Args:
		font: Descriptor carrying font bytes per weight.

	Returns:
		Mapping of weight to registered reportlab font name. Files that
		fail to parse are skipped with a warning.
	"""
	registered: dict[int, str] = {}
	known = set(reportlab.pdfbase.pdfmetrics.getRegisteredFontNames())
	for weight, data in sorted(font.files.items()):
		font_name = f"{sanitize_token(font.family)}-{weight}"
		if font_name not in known:
			try:
				ttf = reportlab.pdfbase.ttfonts.TTFont(font_name, io.BytesIO(data))
				reportlab.pdfbase.pdfmetrics.registerFont(ttf)
			except Exception as error:
				logger.warning("Could not register font %s: %s", font_name, error)
				continue
		registered[weight] = font_name
	return registered


#============================================
def map_font_name(
	family: str,
	weight: int,
	registered: dict[str, dict[int, str]] | None = None,
) -> str:
	"""
	Map a family and weight to a reportlab font name.

	Args:
		family: Font family.
		weight: Font weight.
		registered: Registered TrueType names per family and weight.

	Returns:
		Registered TrueType name when available, otherwise a standard font.
	"""
	is_bold = weight >= 700
	weights = (registered or {}).get(family)
	if weights:
		return weights[nearest_weight(list(weights), weight)]
	if family in STANDARD_BOLD_FONTS:
		return STANDARD_BOLD_FONTS[family] if is_bold else family
	if is_bold:
		return DEFAULT_FONT_BOLD
	return DEFAULT_FONT_REGULAR


#============================================
def draw_text_node(
	pdf: reportlab.pdfgen.canvas.Canvas,
	node: TextNode,
	page_height: float,
	registered: dict[str, dict[int, str]],
) -> None:
	"""
	Draw a text node onto the PDF canvas.

	Args:
		pdf: ReportLab canvas.
		node: TextNode in top-left coordinates.
		page_height: Page height for the y flip.
		registered: Registered TrueType names.
	"""
	if not node.text:
		return
	font_name = map_font_name(node.font_family, node.weight, registered)
	color = parse_hex_color(node.color)
	pdf.saveState()
	pdf.setFont(font_name, node.size)
	pdf.setFillColorRGB(color[0], color[1], color[2])
	pdf.translate(node.x, page_height - node.y)
	if node.rotation:
		# clockwise on screen is negative in PDF space
		pdf.rotate(-node.rotation)
	baseline = -node.size * VERTICAL_CENTER_SHIFT if node.center_vertically else 0.0
	if node.anchor == "middle":
		pdf.drawCentredString(0.0, baseline, node.text)
	elif node.anchor == "end":
		pdf.drawRightString(0.0, baseline, node.text)
	else:
		pdf.drawString(0.0, baseline, node.text)
	pdf.restoreState()


#============================================
def load_image_reader(data_url: str) -> reportlab.lib.utils.ImageReader:
	"""
	Decode a data URL into a reportlab ImageReader.

	Args:
		data_url: Image data URL.

	Returns:
		ImageReader instance.
	"""
	data = wdp.image_cache.decode_data_url(data_url)
	image = PIL.Image.open(io.BytesIO(data))
	image.load()
	return reportlab.lib.utils.ImageReader(image)


#============================================
def draw_image_node(
	pdf: reportlab.pdfgen.canvas.Canvas,
	node: ImageNode,
	page_height: float,
) -> None:
	"""
	Draw an image node, fitted into its box and anchored top-left.

	Args:
		pdf: ReportLab canvas.
		node: ImageNode in top-left coordinates.
		page_height: Page height for the y flip.
	"""
	if node.width <= 0.0 or node.height <= 0.0:
		return
	try:
		image_reader = load_image_reader(node.data_url)
	except Exception as error:
		logger.warning("Skipping undecodable image: %s", error)
		return
	pdf.drawImage(
		image_reader,
		node.x,
		page_height - node.y - node.height,
		width=node.width,
		height=node.height,
		mask="auto",
		preserveAspectRatio=True,
		anchor="nw",
	)


#============================================
def draw_rect_node(
	pdf: reportlab.pdfgen.canvas.Canvas,
	node: RectNode,
	page_height: float,
) -> None:
	"""
	Draw a filled and/or stroked rectangle.

	Args:
		pdf: ReportLab canvas.
		node: RectNode in top-left coordinates.
		page_height: Page height for the y flip.
	"""
	fill = 0
	stroke = 0
	if node.fill_color:
		color = parse_hex_color(node.fill_color)
		pdf.setFillColorRGB(color[0], color[1], color[2])
		fill = 1
	if node.stroke_color:
		color = parse_hex_color(node.stroke_color)
		pdf.setStrokeColorRGB(color[0], color[1], color[2])
		pdf.setLineWidth(node.line_width)
		stroke = 1
	if not fill and not stroke:
		return
	pdf.rect(node.x, page_height - node.y - node.height, node.width, node.height, stroke=stroke, fill=fill)


#============================================
def draw_page(
	pdf: reportlab.pdfgen.canvas.Canvas,
	page: PageSpec,
	registered: dict[str, dict[int, str]],
) -> None:
	pdf.setPageSize((page.width, page.height))
	for node in page.nodes:
		if isinstance(node, TextNode):
			draw_text_node(pdf, node, page.height, registered)
		elif isinstance(node, ImageNode):
			draw_image_node(pdf, node, page.height)
		elif isinstance(node, RectNode):
			draw_rect_node(pdf, node, page.height)
		else:
			raise TypeError(f"Unsupported node type: {type(node).__name__}")
	pdf.showPage()


#============================================
def render_document(document: DocumentSpec) -> bytes:
	"""
	Render a document tree to PDF bytes.

	Args:
		document: DocumentSpec with one or more pages.

	Returns:
		PDF bytes; empty when the document has no pages.
	"""
	if not document.pages:
		return b""
	registered: dict[str, dict[int, str]] = {}
	for family, font in document.fonts.items():
		if font.files:
			names = register_font_files(font)
			if names:
				registered[family] = names

	buffer = io.BytesIO()
	first = document.pages[0]
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(first.width, first.height))
	pdf.setTitle(document.title)
	for page in document.pages:
		draw_page(pdf, page, registered)
	pdf.save()
	return buffer.getvalue()


class ReportlabRenderer:
	"""
	Async renderer that draws in a worker thread.
	"""

	async def __call__(self, document: DocumentSpec) -> bytes:
		return await asyncio.to_thread(render_document, document)


#============================================
def count_pages(blob: bytes) -> int:
	"""
	Count pages in a PDF blob.

	Args:
		blob: PDF bytes.

	Returns:
		Page count.
	"""
	return len(pypdf.PdfReader(io.BytesIO(blob)).pages)


#============================================
def merge_pdf_blobs(blobs: list[bytes]) -> bytes:
	"""
	Concatenate PDF blobs page by page.

	Args:
		blobs: PDF documents in order.

	Returns:
		Combined PDF bytes.
	"""
	if len(blobs) == 1:
		return blobs[0]
	writer = pypdf.PdfWriter()
	for blob in blobs:
		reader = pypdf.PdfReader(io.BytesIO(blob))
		for page in reader.pages:
			writer.add_page(page)
	buffer = io.BytesIO()
	writer.write(buffer)
	return buffer.getvalue()
