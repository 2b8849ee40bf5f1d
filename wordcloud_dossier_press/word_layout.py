"""
Word frequency sizing and spiral placement for word clouds.
"""

# Standard Library
import collections
import dataclasses
import logging
import math
import random
import typing

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.layout
import wordcloud_dossier_press.records


FontDescriptor = wdp.fonts.FontDescriptor
LayoutItem = wdp.layout.LayoutItem
Record = wdp.records.Record

TEXT_WIDTH_FACTOR = wdp.config.TEXT_WIDTH_FACTOR
DEFAULT_TEXT_COLOR = wdp.config.DEFAULT_TEXT_COLOR

MIN_WORD_SIZE = 16.0
MAX_WORD_SIZE = 72.0
LINE_HEIGHT_FACTOR = 1.2
COLLISION_PADDING = 5.0
EDGE_MARGIN = 20.0
RADIUS_STEP = 10.0
MIN_ANGLE_STEPS = 8
ARC_LENGTH_PER_STEP = 50.0

COLOR_SCHEMES = {
	"color": ("#2563eb", "#dc2626", "#059669", "#7c3aed", "#ea580c", "#0891b2", "#be185d", "#0f766e"),
	"grayscale": ("#374151", "#4b5563", "#6b7280", "#9ca3af", "#d1d5db"),
	"black": ("#000000",),
}

logger = logging.getLogger(__name__)


#============================================
def count_word_frequency(records: typing.Iterable[Record]) -> dict[str, int]:
	"""
	Count words case-insensitively, keeping first-seen order.

	Args:
		records: Records whose word field is counted.

	Returns:
		Mapping of lowercased word to count.
	"""
	frequency: collections.Counter = collections.Counter()
	for record in records:
		word = record.word.lower().strip()
		if word:
			frequency[word] += 1
	return dict(frequency)


#============================================
def scale_word_size(frequency: int, min_frequency: int, max_frequency: int) -> float:
	"""
	Log-scale a frequency into the word size range.

	Args:
		frequency: Count for this word.
		min_frequency: Smallest count in the set.
		max_frequency: Largest count in the set.

	Returns:
		Rounded size between 16 and 72.
	"""
	if max_frequency == min_frequency:
		normalized = 1.0
	else:
		normalized = (math.log(frequency) - math.log(min_frequency)) / (
			math.log(max_frequency) - math.log(min_frequency)
		)
	return float(round(MIN_WORD_SIZE + (MAX_WORD_SIZE - MIN_WORD_SIZE) * normalized))


#============================================
def pick_color(color_scheme: str, rng: random.Random) -> str:
	palette = COLOR_SCHEMES.get(color_scheme)
	if not palette:
		return DEFAULT_TEXT_COLOR
	return rng.choice(palette)


#============================================
def build_word_items(
	frequency: dict[str, int],
	fonts: typing.Sequence[FontDescriptor],
	rng: random.Random | None = None,
) -> list[LayoutItem]:
	"""
	Turn word counts into unpositioned layout items.

	Each word gets a random font and weight from the supplied fonts and a
	coin-flip rotation of 0 or 90 degrees.

	Args:
		frequency: Word counts.
		fonts: Usable fonts; Helvetica is used when empty.
		rng: Random source.

	Returns:
		Items in frequency order.
	"""
	rng = rng or random.Random()
	if not frequency:
		return []
	if not fonts:
		logger.warning("No fonts available for word cloud generation, using fallback")
		fonts = [FontDescriptor("Helvetica", (400, 700))]
	max_frequency = max(frequency.values())
	min_frequency = min(frequency.values())
	items = []
	for text, count in frequency.items():
		font = rng.choice(list(fonts))
		items.append(
			LayoutItem(
				text=text,
				font_family=font.family,
				size=scale_word_size(count, min_frequency, max_frequency),
				weight=rng.choice(font.weights),
				rotation=0.0 if rng.random() < 0.5 else 90.0,
				color=DEFAULT_TEXT_COLOR,
			)
		)
	return items


#============================================
def estimate_text_bounds(item: LayoutItem) -> tuple[float, float]:
	"""
	Approximate a word's box including weight and line height.

	Args:
		item: LayoutItem.

	Returns:
		Tuple of (width, height), swapped for quarter turns.
	"""
	weight_factor = 1.2 if item.weight >= 700 else 1.1 if item.weight >= 500 else 1.0
	width = len(item.text) * item.size * TEXT_WIDTH_FACTOR * weight_factor
	height = item.size * LINE_HEIGHT_FACTOR
	if wdp.layout.is_right_angle(item.rotation):
		return (height, width)
	return (width, height)


#============================================
def _padded_box(x: float, y: float, size: tuple[float, float]) -> tuple[float, float, float, float]:
	width, height = size
	return (
		x - width / 2.0 - COLLISION_PADDING,
		y - height / 2.0 - COLLISION_PADDING,
		x + width / 2.0 + COLLISION_PADDING,
		y + height / 2.0 + COLLISION_PADDING,
	)


#============================================
def has_collision(item: LayoutItem, x: float, y: float, placed: list[LayoutItem]) -> bool:
	left, top, right, bottom = _padded_box(x, y, estimate_text_bounds(item))
	for other in placed:
		o_left, o_top, o_right, o_bottom = _padded_box(other.x, other.y, estimate_text_bounds(other))
		if right < o_left or left > o_right or bottom < o_top or top > o_bottom:
			continue
		return True
	return False


#============================================
def is_within_canvas(x: float, y: float, size: tuple[float, float], canvas: tuple[float, float]) -> bool:
	width, height = size
	return (
		x - width / 2.0 >= EDGE_MARGIN
		and x + width / 2.0 <= canvas[0] - EDGE_MARGIN
		and y - height / 2.0 >= EDGE_MARGIN
		and y + height / 2.0 <= canvas[1] - EDGE_MARGIN
	)


#============================================
def find_position(item: LayoutItem, placed: list[LayoutItem], canvas: tuple[float, float]) -> tuple[float, float]:
	"""
	Spiral outward from the canvas center to the first free spot.

	Args:
		item: Word to place.
		placed: Words already placed.
		canvas: Canvas (width, height).

	Returns:
		Center position; the canvas center when nothing fits.
	"""
	center_x = canvas[0] / 2.0
	center_y = canvas[1] / 2.0
	size = estimate_text_bounds(item)
	if is_within_canvas(center_x, center_y, size, canvas) and not has_collision(item, center_x, center_y, placed):
		return (center_x, center_y)

	max_radius = max(canvas) / 2.0
	radius = RADIUS_STEP
	while radius <= max_radius:
		angle_steps = max(MIN_ANGLE_STEPS, int(2.0 * math.pi * radius / ARC_LENGTH_PER_STEP))
		angle_step = 2.0 * math.pi / angle_steps
		for step in range(angle_steps):
			angle = step * angle_step
			x = center_x + radius * math.cos(angle)
			y = center_y + radius * math.sin(angle)
			if is_within_canvas(x, y, size, canvas) and not has_collision(item, x, y, placed):
				return (x, y)
		radius += RADIUS_STEP

	logger.warning("Could not find collision-free position for word: %s", item.text)
	return (center_x, center_y)


#============================================
def place_words(
	items: list[LayoutItem],
	canvas: tuple[float, float],
	color_scheme: str = "color",
	rng: random.Random | None = None,
) -> list[LayoutItem]:
	"""
	Position words largest first and assign scheme colors.

	Args:
		items: Unpositioned items.
		canvas: Canvas (width, height) in points.
		color_scheme: "color", "grayscale" or "black".
		rng: Random source for colors.

	Returns:
		Positioned items, largest first.
	"""
	rng = rng or random.Random()
	placed: list[LayoutItem] = []
	for item in sorted(items, key=lambda entry: entry.size, reverse=True):
		x, y = find_position(item, placed, canvas)
		placed.append(dataclasses.replace(item, x=x, y=y, color=pick_color(color_scheme, rng)))
	return placed
