"""
CLI entry point for word cloud and dossier PDF generation.
"""

# Standard Library
import argparse
import asyncio
import logging
import pathlib
import random
import time

# local repo modules
import wordcloud_dossier_press as wdp
import wordcloud_dossier_press.config
import wordcloud_dossier_press.errors
import wordcloud_dossier_press.generator
import wordcloud_dossier_press.ingest
import wordcloud_dossier_press.word_layout


PerformanceConfig = wdp.config.PerformanceConfig
PageConfig = wdp.config.PageConfig
DocumentError = wdp.errors.DocumentError

PAPER_SIZES = wdp.config.PAPER_SIZES
ORIENTATIONS = wdp.config.ORIENTATIONS
COLOR_SCHEMES = wdp.word_layout.COLOR_SCHEMES
DOCUMENT_CHOICES = ("wordcloud", "dossier", "both")


#============================================
def build_performance_config(args: argparse.Namespace) -> PerformanceConfig:
	"""
	Build performance config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		PerformanceConfig with defaults for unset flags.
	"""
	return PerformanceConfig().updated(
		max_image_size=args.max_image_size,
		max_dataset_size=args.max_dataset_size,
		font_cache_size=args.font_cache_size,
		pdf_chunk_size=args.pdf_chunk_size,
		image_cache_capacity=args.image_cache_capacity,
		font_timeout=args.font_timeout,
		font_retry_attempts=args.font_retry_attempts,
		font_retry_base_delay=args.font_retry_base_delay,
		max_word_cloud_items=args.max_word_cloud_items,
		word_cloud_timeout=args.word_cloud_timeout,
		dossier_chunk_timeout=args.dossier_chunk_timeout,
		chunk_pause=args.chunk_pause,
		merge_chunks=args.merge_chunks,
	)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list; defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Generate word cloud and dossier PDFs from a data folder.")
	parser.add_argument("input_folder", help="Folder with JSON records and images.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output-dir", dest="output_dir", default=".", help="Directory for PDFs.")
	output_group.add_argument("-t", "--document", dest="document", choices=DOCUMENT_CHOICES, default="both", help="Documents to generate.")
	output_group.add_argument("-s", "--paper-size", dest="paper_size", choices=sorted(PAPER_SIZES), default="A4", help="Paper size.")
	output_group.add_argument("-r", "--orientation", dest="orientation", choices=ORIENTATIONS, default="portrait", help="Page orientation.")
	output_group.add_argument("-c", "--color-scheme", dest="color_scheme", choices=sorted(COLOR_SCHEMES), default="color", help="Word cloud colors.")
	output_group.add_argument("--seed", dest="seed", type=int, default=None, help="Random seed for word cloud layout.")

	perf_group = parser.add_argument_group("Performance")
	perf_group.add_argument("--max-image-size", dest="max_image_size", type=int, default=None, help="Image byte budget.")
	perf_group.add_argument("--max-dataset-size", dest="max_dataset_size", type=int, default=None, help="Largest accepted record count.")
	perf_group.add_argument("--font-cache-size", dest="font_cache_size", type=int, default=None, help="Font cache capacity.")
	perf_group.add_argument("--pdf-chunk-size", dest="pdf_chunk_size", type=int, default=None, help="Records per dossier chunk.")
	perf_group.add_argument("--image-cache-capacity", dest="image_cache_capacity", type=int, default=None, help="Image cache capacity.")
	perf_group.add_argument("--font-timeout", dest="font_timeout", type=float, default=None, help="Seconds per font attempt.")
	perf_group.add_argument("--font-retry-attempts", dest="font_retry_attempts", type=int, default=None, help="Attempts per font family.")
	perf_group.add_argument("--font-retry-base-delay", dest="font_retry_base_delay", type=float, default=None, help="First retry delay in seconds.")
	perf_group.add_argument("--max-word-cloud-items", dest="max_word_cloud_items", type=int, default=None, help="Word cap per cloud.")
	perf_group.add_argument("--word-cloud-timeout", dest="word_cloud_timeout", type=float, default=None, help="Word cloud render timeout.")
	perf_group.add_argument("--dossier-chunk-timeout", dest="dossier_chunk_timeout", type=float, default=None, help="Per-chunk render timeout.")
	perf_group.add_argument("--chunk-pause", dest="chunk_pause", type=float, default=None, help="Pause between chunks in seconds.")
	perf_group.add_argument("-m", "--merge-chunks", dest="merge_chunks", action="store_true", help="Merge every chunk into one PDF.")
	perf_group.add_argument("-M", "--no-merge-chunks", dest="merge_chunks", action="store_false", help="Keep only the first chunk.")

	parser.add_argument("-v", "--verbose", dest="verbose", action="store_true", help="Enable debug logging.")
	parser.set_defaults(merge_chunks=True, verbose=False)

	args = parser.parse_args(argv)
	return args


#============================================
async def generate_documents(args: argparse.Namespace) -> list[pathlib.Path]:
	"""
	Load the data folder and write the requested PDFs.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Written PDF paths.
	"""
	page_config = PageConfig.create(args.paper_size, args.orientation)
	config = build_performance_config(args)
	output_dir = pathlib.Path(args.output_dir)
	output_dir.mkdir(parents=True, exist_ok=True)

	data = wdp.ingest.load_data_folder(pathlib.Path(args.input_folder))
	print(f"Records loaded: {len(data.records)}")
	print(f"Images loaded: {len(data.images)}")
	for warning in data.warnings:
		print(f"Warning: {warning}")

	generator = wdp.generator.build_generator(config, rng=random.Random(args.seed))
	written: list[pathlib.Path] = []

	if args.document in ("wordcloud", "both"):
		print("Generating word cloud")
		items = await generator.compose_word_cloud(
			data.records,
			page_config,
			args.color_scheme,
			random.Random(args.seed),
		)
		result = await generator.generate_word_cloud(items, page_config, "word-cloud")
		path = output_dir / result.filename
		path.write_bytes(result.data)
		print(f"Word cloud written: {path} ({len(items)} words)")
		written.append(path)

	if args.document in ("dossier", "both"):
		print("Generating dossier")
		result = await generator.generate_dossier(data.records, data.images, page_config, "dossier")
		path = output_dir / result.filename
		path.write_bytes(result.data)
		print(f"Dossier written: {path} ({result.pages} pages, {result.chunks} chunks)")
		written.append(path)
	return written


#============================================
def run_pipeline(args: argparse.Namespace) -> int:
	"""
	Run generation and report the outcome.

	Args:
		args: Parsed argparse namespace.

	Returns:
		Process exit code.
	"""
	print("Word cloud and dossier pipeline")
	print(f"Input folder: {args.input_folder}")
	print(f"Output directory: {args.output_dir}")
	print(f"Documents: {args.document}")
	print(f"Paper: {args.paper_size} {args.orientation}")
	if args.seed is not None:
		print(f"Seed: {args.seed}")

	start_time = time.perf_counter()
	try:
		written = asyncio.run(generate_documents(args))
	except DocumentError as error:
		print(f"Error: {error.user_message}")
		logging.getLogger(__name__).debug("Generation failed", exc_info=error)
		return 1
	except ValueError as error:
		print(f"Error: {error}")
		return 2
	total_time = time.perf_counter() - start_time
	print(f"Files written: {len(written)}")
	print(f"Timing: total={total_time:.2f}s")
	return 0


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
	)
	raise SystemExit(run_pipeline(args))


if __name__ == "__main__":
	main()
