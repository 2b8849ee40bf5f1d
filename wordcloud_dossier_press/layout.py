"""
Layout items and scale-to-fit for word cloud pages.
"""

# Standard Library
import dataclasses
import math

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config


TEXT_WIDTH_FACTOR = wdp.config.TEXT_WIDTH_FACTOR
MIN_SCALED_FONT_SIZE = wdp.config.MIN_SCALED_FONT_SIZE
WORD_CLOUD_MARGIN = wdp.config.WORD_CLOUD_MARGIN


@dataclasses.dataclass(frozen=True)
class LayoutItem:
	text: str
	font_family: str
	size: float
	weight: int = 400
	x: float | None = None
	y: float | None = None
	rotation: float = 0.0
	color: str | None = None


@dataclasses.dataclass(frozen=True)
class Bounds:
	min_x: float
	min_y: float
	max_x: float
	max_y: float

	@property
	def width(self) -> float:
		return self.max_x - self.min_x

	@property
	def height(self) -> float:
		return self.max_y - self.min_y


#============================================
def has_position(item: LayoutItem) -> bool:
	"""
	Check that an item carries finite numeric coordinates.

	Args:
		item: LayoutItem to check.

	Returns:
		True when x and y are usable.
	"""
	for value in (item.x, item.y):
		if isinstance(value, bool) or not isinstance(value, (int, float)):
			return False
		if not math.isfinite(value):
			return False
	return True


#============================================
def is_right_angle(rotation: float) -> bool:
	"""
	Check for a quarter-turn rotation.

	Args:
		rotation: Rotation in degrees.

	Returns:
		True for 90 or 270 degrees modulo 360.
	"""
	return math.isclose(rotation % 180.0, 90.0)


#============================================
def compute_item_footprint(item: LayoutItem) -> tuple[float, float]:
	"""
	Approximate the drawn size of an item.

	Args:
		item: LayoutItem.

	Returns:
		Tuple of (width, height), swapped for quarter-turn rotations.
	"""
	width = len(item.text) * item.size * TEXT_WIDTH_FACTOR
	height = item.size
	if is_right_angle(item.rotation):
		return (height, width)
	return (width, height)


#============================================
def compute_items_bounds(items: list[LayoutItem]) -> Bounds | None:
	"""
	Union bounding box of all positioned items.

	Args:
		items: Layout items; items without a position are ignored.

	Returns:
		Bounds, or None when no item is positioned.
	"""
	bounds = None
	for item in items:
		if not has_position(item):
			continue
		width, height = compute_item_footprint(item)
		left = item.x - width / 2.0
		right = item.x + width / 2.0
		top = item.y - height / 2.0
		bottom = item.y + height / 2.0
		if bounds is None:
			bounds = Bounds(left, top, right, bottom)
			continue
		bounds = Bounds(
			min(bounds.min_x, left),
			min(bounds.min_y, top),
			max(bounds.max_x, right),
			max(bounds.max_y, bottom),
		)
	return bounds


#============================================
def compute_center_offset(available: float, scaled: float) -> float:
	"""
	Offset that centers a scaled span inside an available span.

	Args:
		available: Available dimension.
		scaled: Scaled dimension.

	Returns:
		Offset in points.
	"""
	return max(0.0, (available - scaled) / 2.0)


#============================================
def fit_items_to_page(
	items: list[LayoutItem],
	region: tuple[float, float],
	margin: float = WORD_CLOUD_MARGIN,
	min_font_size: float = MIN_SCALED_FONT_SIZE,
) -> list[LayoutItem]:
	"""
	Shrink and center a positioned layout inside a page region.

	Args:
		items: Layout items with center positions.
		region: Page (width, height) in points.
		margin: Margin applied on every side.
		min_font_size: Floor for scaled font sizes.

	Returns:
		New list of items; the input is returned unchanged when the
		bounding box or the region inside the margins is degenerate.
	"""
	bounds = compute_items_bounds(items)
	if bounds is None or bounds.width <= 0.0 or bounds.height <= 0.0:
		return items

	page_width, page_height = region
	available_width = page_width - 2.0 * margin
	available_height = page_height - 2.0 * margin
	if available_width <= 0.0 or available_height <= 0.0:
		return items
	scale = min(available_width / bounds.width, available_height / bounds.height, 1.0)

	offset_x = margin + compute_center_offset(available_width, bounds.width * scale) - bounds.min_x * scale
	offset_y = margin + compute_center_offset(available_height, bounds.height * scale) - bounds.min_y * scale

	scaled_items: list[LayoutItem] = []
	for item in items:
		if not has_position(item):
			scaled_items.append(item)
			continue
		scaled_items.append(
			dataclasses.replace(
				item,
				x=item.x * scale + offset_x,
				y=item.y * scale + offset_y,
				size=max(min_font_size, item.size * scale),
			)
		)
	return scaled_items
