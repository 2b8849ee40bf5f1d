"""
Person records and their structural validation.
"""

# Standard Library
import collections.abc
import dataclasses
import logging
import typing

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.errors


InputValidationError = wdp.errors.InputValidationError

DEFAULT_MAX_DATASET_SIZE = wdp.config.DEFAULT_MAX_DATASET_SIZE

logger = logging.getLogger(__name__)

# (field, message label, required)
RECORD_FIELDS = (
	("person", "person name", True),
	("word", "word", True),
	("description", "description", False),
	("picture", "picture filename", False),
)


@dataclasses.dataclass(frozen=True)
class Record:
	person: str
	word: str
	description: str | None = None
	picture: str | None = None


#============================================
def _field_value(raw: typing.Any, name: str) -> typing.Any:
	if isinstance(raw, Record):
		return getattr(raw, name)
	return raw.get(name)


#============================================
def parse_record(
	raw: typing.Any,
	index: int,
	document_type: str | None = None,
	allow_empty_optional: bool = False,
) -> Record:
	"""
	Validate one raw record.

	Args:
		raw: Mapping or Record.
		index: Position for error messages.
		document_type: Document the record is for, used in errors.
		allow_empty_optional: Accept empty strings for optional fields.

	Returns:
		Record.
	"""
	if not isinstance(raw, (Record, collections.abc.Mapping)):
		raise InputValidationError(f"Invalid record at index {index}", document_type)
	values: dict[str, str | None] = {}
	for name, label, required in RECORD_FIELDS:
		value = _field_value(raw, name)
		if value is None and not required:
			values[name] = None
			continue
		if isinstance(value, str) and not required and allow_empty_optional:
			values[name] = value
			continue
		if not isinstance(value, str) or not value.strip():
			raise InputValidationError(f"Invalid {label} at index {index}", document_type)
		values[name] = value
	return Record(**values)


#============================================
def validate_records(
	raw_records: typing.Any,
	max_count: int = DEFAULT_MAX_DATASET_SIZE,
	document_type: str | None = None,
	allow_empty_optional: bool = False,
) -> list[Record]:
	"""
	Validate a record list before any expensive work.

	Args:
		raw_records: Candidate list of mappings or Records.
		max_count: Largest accepted list.
		document_type: Document the records are for, used in errors.
		allow_empty_optional: Accept empty strings for optional fields.

	Returns:
		List of Records in input order.
	"""
	if isinstance(raw_records, (str, bytes)) or not isinstance(raw_records, collections.abc.Sequence):
		raise InputValidationError("Records must be a list", document_type)
	if not raw_records:
		raise InputValidationError("Record list cannot be empty", document_type)
	if len(raw_records) > max_count:
		raise InputValidationError(
			f"Dataset too large. Maximum {max_count} items supported for PDF generation.",
			document_type,
		)
	return [
		parse_record(raw, index, document_type, allow_empty_optional)
		for index, raw in enumerate(raw_records)
	]


#============================================
def find_missing_images(records: list[Record], available: typing.Iterable[str]) -> list[str]:
	"""
	Report pictures referenced by records but not supplied.

	Args:
		records: Validated records.
		available: Available image filenames.

	Returns:
		Warning strings, one per missing reference.
	"""
	available_names = set(available)
	warnings = []
	for index, record in enumerate(records, start=1):
		if record.picture and record.picture not in available_names:
			warnings.append(
				f'Entry {index} ({record.person}): Picture "{record.picture}" not found in data folder'
			)
	return warnings


#============================================
def mean_description_length(records: list[Record]) -> float:
	"""
	Average description length, counting missing descriptions as empty.
	"""
	if not records:
		return 0.0
	return sum(len(record.description or "") for record in records) / len(records)
