import asyncio
import io
import pathlib

import fitz
import PIL.Image
import pypdf
import pytest
import reportlab

import wordcloud_dossier_press.document
import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.layout
import wordcloud_dossier_press.records
import wordcloud_dossier_press.render


DPI = 72
INK_THRESHOLD = 200
Record = wordcloud_dossier_press.records.Record


#============================================
def _render_pdf_first_page(data: bytes) -> PIL.Image.Image:
	"""
	Render the first page of a PDF to an image.

	Args:
		data: PDF bytes.

	Returns:
		PIL image.
	"""
	document = fitz.open(stream=data, filetype="pdf")
	page = document[0]
	scale = DPI / 72.0
	matrix = fitz.Matrix(scale, scale)
	pixmap = page.get_pixmap(matrix=matrix, alpha=False)
	image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	document.close()
	return image


#============================================
def _count_ink_ratio(gray: PIL.Image.Image, threshold: int) -> float:
	"""
	Compute the ink ratio for a grayscale region.

	Args:
		gray: Grayscale image region.
		threshold: Pixel intensity threshold.

	Returns:
		Ink ratio.
	"""
	pixels = list(gray.getdata())
	if not pixels:
		return 0.0
	ink = sum(1 for value in pixels if value < threshold)
	return ink / len(pixels)


#============================================
def test_parse_hex_color() -> None:
	"""
	Short and long hex colors parse; junk falls back to black.
	"""
	assert wordcloud_dossier_press.render.parse_hex_color("#FF0000") == (1.0, 0.0, 0.0)
	assert wordcloud_dossier_press.render.parse_hex_color("#333") == pytest.approx((0.2, 0.2, 0.2))
	assert wordcloud_dossier_press.render.parse_hex_color("red") == (0.0, 0.0, 0.0)
	assert wordcloud_dossier_press.render.parse_hex_color("#GGGGGG") == (0.0, 0.0, 0.0)


#============================================
def test_font_name_mapping() -> None:
	"""
	Standard families keep their bold variants; unknown families use Helvetica.
	"""
	map_font_name = wordcloud_dossier_press.render.map_font_name
	assert map_font_name("Times-Roman", 700) == "Times-Bold"
	assert map_font_name("Courier", 400) == "Courier"
	assert map_font_name("Lato", 900) == "Helvetica-Bold"
	assert map_font_name("Lato", 300) == "Helvetica"
	registered = {"Lato": {400: "Lato-400", 700: "Lato-700"}}
	assert map_font_name("Lato", 600, registered) == "Lato-700"
	assert map_font_name("Lato", 300, registered) == "Lato-400"


#============================================
def test_normalize_filename() -> None:
	"""
	A .pdf extension is added only when missing.
	"""
	assert wordcloud_dossier_press.render.normalize_filename("cloud") == "cloud.pdf"
	assert wordcloud_dossier_press.render.normalize_filename("cloud.PDF") == "cloud.PDF"


#============================================
def test_register_truetype_from_bytes() -> None:
	"""
	Downloaded TrueType bytes register under a family-weight name.
	"""
	fonts_dir = pathlib.Path(reportlab.__file__).parent / "fonts"
	regular = fonts_dir / "Vera.ttf"
	bold = fonts_dir / "VeraBd.ttf"
	if not regular.exists() or not bold.exists():
		pytest.skip("reportlab sample fonts not installed")
	font = wordcloud_dossier_press.fonts.FontDescriptor(
		"Vera Sample",
		(400, 700),
		{400: regular.read_bytes(), 700: bold.read_bytes(), 900: b"not a font"},
	)
	names = wordcloud_dossier_press.render.register_font_files(font)
	assert names == {400: "Vera_Sample-400", 700: "Vera_Sample-700"}

	item = wordcloud_dossier_press.layout.LayoutItem("embedded", "Vera Sample", 40.0, weight=700, x=300.0, y=400.0)
	document = wordcloud_dossier_press.document.build_word_cloud_document([item], (595.0, 842.0), {"Vera Sample": font})
	data = wordcloud_dossier_press.render.render_document(document)
	reader = pypdf.PdfReader(io.BytesIO(data))
	fonts = reader.pages[0]["/Resources"]["/Font"]
	base_fonts = [str(fonts[key].get_object()["/BaseFont"]) for key in fonts]
	assert any("Vera" in name for name in base_fonts)


#============================================
def test_dossier_page_renders_ink(png_factory) -> None:
	"""
	A rendered dossier page has the right size and visible content.
	"""
	records = [
		Record("Ada Lovelace", "curious", "Wrote the first algorithm. " * 10, "ada.png"),
		Record("Grace Hopper", "bold", "Built the first compiler.", "missing.png"),
	]
	images = {"ada.png": png_factory(120, 90)}
	document = wordcloud_dossier_press.document.build_dossier_document(records, images, (595.0, 842.0), 2)
	renderer = wordcloud_dossier_press.render.ReportlabRenderer()
	data = asyncio.run(renderer(document))
	assert wordcloud_dossier_press.render.count_pages(data) == 1

	image = _render_pdf_first_page(data)
	assert image.size == (595, 842)
	gray = image.convert("L")
	assert _count_ink_ratio(gray, INK_THRESHOLD) > 0.001
	# header band is inked and the bottom margin below the footer is blank
	assert _count_ink_ratio(gray.crop((40, 40, 555, 80)), INK_THRESHOLD) > 0.0
	assert _count_ink_ratio(gray.crop((0, 830, 595, 842)), INK_THRESHOLD) == 0.0


#============================================
def test_rotated_word_stays_on_page() -> None:
	"""
	A rotated centered word is drawn around its anchor point.
	"""
	item = wordcloud_dossier_press.layout.LayoutItem("vertical", "Helvetica", 48.0, x=297.5, y=421.0, rotation=90.0, color="#000000")
	document = wordcloud_dossier_press.document.build_word_cloud_document([item], (595.0, 842.0))
	image = _render_pdf_first_page(wordcloud_dossier_press.render.render_document(document)).convert("L")
	assert _count_ink_ratio(image.crop((250, 300, 345, 540)), INK_THRESHOLD) > 0.01
	assert _count_ink_ratio(image.crop((0, 0, 595, 200)), INK_THRESHOLD) == 0.0


#============================================
def test_merge_and_empty_document() -> None:
	"""
	Merging keeps every page and an empty document renders to no bytes.
	"""
	page = wordcloud_dossier_press.document.PageSpec(595.0, 842.0)
	single = wordcloud_dossier_press.document.DocumentSpec("one", [page])
	blob = wordcloud_dossier_press.render.render_document(single)
	merged = wordcloud_dossier_press.render.merge_pdf_blobs([blob, blob, blob])
	assert wordcloud_dossier_press.render.count_pages(merged) == 3
	empty = wordcloud_dossier_press.document.DocumentSpec("none", [])
	assert wordcloud_dossier_press.render.render_document(empty) == b""
