import json
import pathlib

import wordcloud_dossier_press.cli
import wordcloud_dossier_press.fonts
import wordcloud_dossier_press.image_cache
import wordcloud_dossier_press.render


#============================================
def _write_data_folder(folder: pathlib.Path, png_data_url: str) -> None:
	"""
	Write a small data folder with one image.
	"""
	records = [
		{"person": "Ada", "word": "Curious", "description": "Analyst", "picture": "ada.png"},
		{"person": "Bob", "word": "curious"},
		{"person": "Cy", "word": "Kind", "description": "Gardener"},
	]
	(folder / "people.json").write_text(json.dumps(records), encoding="utf-8")
	(folder / "ada.png").write_bytes(wordcloud_dossier_press.image_cache.decode_data_url(png_data_url))


#============================================
def test_flags_map_onto_config() -> None:
	"""
	Unset flags keep defaults and set flags override them.
	"""
	args = wordcloud_dossier_press.cli.parse_args(["data", "--pdf-chunk-size", "25", "-M", "--font-timeout", "2.5"])
	config = wordcloud_dossier_press.cli.build_performance_config(args)
	assert config.pdf_chunk_size == 25
	assert config.font_timeout == 2.5
	assert config.merge_chunks is False
	assert config.max_dataset_size == 1000
	assert args.document == "both"


#============================================
def test_pipeline_writes_both_documents(tmp_path: pathlib.Path, png_data_url: str, monkeypatch) -> None:
	"""
	The CLI writes a word cloud and a dossier PDF.
	"""

	async def offline_fonts(self, word_count: int) -> list:
		return list(wordcloud_dossier_press.fonts.SYSTEM_FONTS)

	monkeypatch.setattr(wordcloud_dossier_press.fonts.FontAcquisitionService, "preload_for_word_cloud", offline_fonts)
	data_dir = tmp_path / "data"
	data_dir.mkdir()
	_write_data_folder(data_dir, png_data_url)
	output_dir = tmp_path / "out"
	args = wordcloud_dossier_press.cli.parse_args([str(data_dir), "-o", str(output_dir), "--seed", "3"])

	assert wordcloud_dossier_press.cli.run_pipeline(args) == 0
	cloud = output_dir / "word-cloud.pdf"
	dossier = output_dir / "dossier.pdf"
	assert wordcloud_dossier_press.render.count_pages(cloud.read_bytes()) == 1
	assert wordcloud_dossier_press.render.count_pages(dossier.read_bytes()) == 1


#============================================
def test_pipeline_reports_invalid_input(tmp_path: pathlib.Path, capsys) -> None:
	"""
	Input errors print a user message and return a failing exit code.
	"""
	args = wordcloud_dossier_press.cli.parse_args([str(tmp_path), "-t", "dossier", "-o", str(tmp_path / "out")])
	assert wordcloud_dossier_press.cli.run_pipeline(args) == 1
	assert "No JSON files found" in capsys.readouterr().out
