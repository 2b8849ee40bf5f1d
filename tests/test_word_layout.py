import random

import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.records
import wordcloud_dossier_press.word_layout


Record = wordcloud_dossier_press.records.Record
FontDescriptor = wordcloud_dossier_press.fonts.FontDescriptor


#============================================
def test_frequency_is_case_insensitive() -> None:
	"""
	Words are lowercased and trimmed before counting.
	"""
	records = [Record("A", "Brave"), Record("B", " brave "), Record("C", "kind")]
	frequency = wordcloud_dossier_press.word_layout.count_word_frequency(records)
	assert frequency == {"brave": 2, "kind": 1}
	assert list(frequency) == ["brave", "kind"]


#============================================
def test_sizes_scale_logarithmically() -> None:
	"""
	The rarest word is smallest and the most frequent is largest.
	"""
	scale = wordcloud_dossier_press.word_layout.scale_word_size
	assert scale(1, 1, 100) == 16.0
	assert scale(100, 1, 100) == 72.0
	assert scale(10, 1, 100) == 44.0
	assert scale(3, 3, 3) == 72.0


#============================================
def test_items_use_supplied_fonts() -> None:
	"""
	Fonts and weights are drawn from the supplied descriptors.
	"""
	fonts = [FontDescriptor("Lato", (300, 900)), FontDescriptor("Ubuntu", (500,))]
	items = wordcloud_dossier_press.word_layout.build_word_items({"a": 1, "b": 4}, fonts, random.Random(1))
	assert [item.text for item in items] == ["a", "b"]
	for item in items:
		assert (item.font_family, item.weight) in {("Lato", 300), ("Lato", 900), ("Ubuntu", 500)}
		assert item.rotation in (0.0, 90.0)
		assert item.x is None


#============================================
def test_placed_words_do_not_overlap() -> None:
	"""
	Spiral placement keeps padded boxes apart and inside the canvas.
	"""
	frequency = {f"word{index}": index + 1 for index in range(12)}
	fonts = [FontDescriptor("Helvetica", (400, 700))]
	rng = random.Random(5)
	items = wordcloud_dossier_press.word_layout.build_word_items(frequency, fonts, rng)
	canvas = (1191.0, 842.0)
	placed = wordcloud_dossier_press.word_layout.place_words(items, canvas, "grayscale", rng)

	assert [item.size for item in placed] == sorted((item.size for item in placed), reverse=True)
	grays = wordcloud_dossier_press.word_layout.COLOR_SCHEMES["grayscale"]
	for index, item in enumerate(placed):
		assert item.color in grays
		width, height = wordcloud_dossier_press.word_layout.estimate_text_bounds(item)
		assert item.x - width / 2.0 >= 0.0
		assert item.y + height / 2.0 <= canvas[1]
		others = placed[:index]
		assert not wordcloud_dossier_press.word_layout.has_collision(item, item.x, item.y, others)


#============================================
def test_black_scheme_and_unknown_scheme() -> None:
	"""
	Black is a single color; unknown schemes use the default text color.
	"""
	rng = random.Random(0)
	assert wordcloud_dossier_press.word_layout.pick_color("black", rng) == "#000000"
	assert wordcloud_dossier_press.word_layout.pick_color("neon", rng) == "#333333"
