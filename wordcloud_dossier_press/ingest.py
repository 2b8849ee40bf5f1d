"""
Data folder ingestion: JSON records plus referenced images.
"""

# Standard Library
import dataclasses
import json
import logging
import pathlib

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.errors
import wordcloud_dossier_press.image_cache
import wordcloud_dossier_press.records


Record = wdp.records.Record
InputValidationError = wdp.errors.InputValidationError

DATA_SUFFIXES = (".json",)
IMAGE_MIME_TYPES = {
	".png": "image/png",
	".jpg": "image/jpeg",
	".jpeg": "image/jpeg",
}

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class DataLoadResult:
	records: list[Record]
	images: dict[str, str]
	warnings: list[str]


#============================================
def classify_files(paths: list[pathlib.Path]) -> tuple[list[pathlib.Path], list[pathlib.Path]]:
	"""
	Split files into structured data and images by lowercased suffix.

	Args:
		paths: Candidate file paths.

	Returns:
		Tuple of (data paths, image paths), each sorted by name.
	"""
	data_paths: list[pathlib.Path] = []
	image_paths: list[pathlib.Path] = []
	for path in sorted(paths, key=lambda entry: entry.name.lower()):
		name = path.name.lower()
		if name.endswith(DATA_SUFFIXES):
			data_paths.append(path)
		elif name.endswith(tuple(IMAGE_MIME_TYPES)):
			image_paths.append(path)
	return (data_paths, image_paths)


#============================================
def read_image_data_url(path: pathlib.Path) -> str:
	"""
	Read an image file as a base64 data URL.

	Args:
		path: Image path.

	Returns:
		Data URL string.
	"""
	mime_type = IMAGE_MIME_TYPES[path.suffix.lower()]
	return wdp.image_cache.encode_data_url(path.read_bytes(), mime_type)


#============================================
def load_records_file(path: pathlib.Path) -> list[Record]:
	"""
	Decode and validate one JSON data file.

	Args:
		path: JSON path holding a list of records or a single record.

	Returns:
		Validated records.
	"""
	try:
		payload = json.loads(path.read_text(encoding="utf-8"))
	except json.JSONDecodeError as error:
		raise InputValidationError(f"{path.name} is not valid JSON: {error}") from error
	if isinstance(payload, dict):
		payload = [payload]
	# the dataset size limit applies to the combined folder, not one file;
	# empty optional fields are accepted here and rejected by the dossier
	max_count = len(payload) if isinstance(payload, list) and payload else 1
	try:
		return wdp.records.validate_records(payload, max_count=max_count, allow_empty_optional=True)
	except InputValidationError as error:
		raise InputValidationError(f"{path.name}: {error}") from error


#============================================
def load_data_folder(folder: pathlib.Path) -> DataLoadResult:
	"""
	Load every record and image from a data folder.

	Args:
		folder: Folder path.

	Returns:
		DataLoadResult with concatenated records, images by filename, and
		missing-picture warnings.
	"""
	folder = folder.expanduser().resolve()
	if not folder.is_dir():
		raise InputValidationError(f"Data folder not found: {folder}")
	paths = [path for path in folder.iterdir() if path.is_file()]
	data_paths, image_paths = classify_files(paths)
	if not data_paths:
		raise InputValidationError("No JSON files found in the selected folder")

	records: list[Record] = []
	for path in data_paths:
		records.extend(load_records_file(path))

	images: dict[str, str] = {}
	for path in image_paths:
		try:
			images[path.name] = read_image_data_url(path)
		except OSError as error:
			logger.warning("Failed to load image %s: %s", path.name, error)

	warnings = wdp.records.find_missing_images(records, images)
	for warning in warnings:
		logger.warning(warning)
	return DataLoadResult(records=records, images=images, warnings=warnings)
