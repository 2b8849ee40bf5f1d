import asyncio
import random

import httpx

import wordcloud_dossier_press.config
import wordcloud_dossier_press.fonts


FONT_CSS = """
/* latin */
@font-face {
  font-family: 'Test';
  font-style: normal;
  font-weight: 400;
  src: url(https://fonts.gstatic.com/s/test/regular.ttf) format('truetype');
}
@font-face {
  font-family: 'Test';
  font-style: normal;
  font-weight: 700;
  src: url(https://fonts.gstatic.com/s/test/bold.ttf) format('truetype');
}
"""


class FontServer:
	"""
	Mock font endpoint that serves only the given families.
	"""

	def __init__(self, reachable: set[str]) -> None:
		self.reachable = reachable
		self.stylesheet_requests: list[str] = []
		self.file_requests = 0

	def __call__(self, request: httpx.Request) -> httpx.Response:
		if request.url.host == "fonts.gstatic.com":
			self.file_requests += 1
			return httpx.Response(200, content=b"\x00\x01\x00\x00fake")
		family = request.url.params["family"].split(":")[0]
		self.stylesheet_requests.append(family)
		if family not in self.reachable:
			return httpx.Response(503, text="unavailable")
		return httpx.Response(200, text=FONT_CSS)


#============================================
async def _no_sleep(delay: float) -> None:
	return None


#============================================
def _build_service(server: FontServer, **kwargs) -> wordcloud_dossier_press.fonts.FontAcquisitionService:
	client = httpx.AsyncClient(transport=httpx.MockTransport(server))
	return wordcloud_dossier_press.fonts.FontAcquisitionService(
		client=client,
		rng=random.Random(7),
		sleep=_no_sleep,
		**kwargs,
	)


#============================================
def test_font_count_bounds() -> None:
	"""
	Font count is ceil(words / 5), clamped to [3, catalog size].
	"""
	assert wordcloud_dossier_press.fonts.compute_font_count(0, 15) == 3
	assert wordcloud_dossier_press.fonts.compute_font_count(26, 15) == 6
	assert wordcloud_dossier_press.fonts.compute_font_count(500, 15) == 15


#============================================
def test_essential_weights() -> None:
	"""
	Regular and bold are preferred; otherwise the first three weights.
	"""
	assert wordcloud_dossier_press.fonts.select_essential_weights((300, 400, 700, 900)) == (400, 700)
	assert wordcloud_dossier_press.fonts.select_essential_weights((100, 200, 300, 500)) == (100, 200, 300)


#============================================
def test_stylesheet_url_and_parse() -> None:
	"""
	Stylesheet URLs encode the family and the parser finds TTF sources.
	"""
	url = wordcloud_dossier_press.fonts.build_stylesheet_url("Open Sans", (700, 400))
	assert url == "https://fonts.googleapis.com/css2?family=Open+Sans:wght@400;700&display=swap"
	sources = wordcloud_dossier_press.fonts.parse_stylesheet(FONT_CSS)
	assert sources == {
		400: "https://fonts.gstatic.com/s/test/regular.ttf",
		700: "https://fonts.gstatic.com/s/test/bold.ttf",
	}


#============================================
def test_same_family_fetched_once() -> None:
	"""
	A loaded family is not requested again.
	"""
	server = FontServer({"Roboto"})
	service = _build_service(server)

	async def scenario() -> None:
		await service.load(["Roboto"])
		await service.load(["Roboto", "Roboto"])

	asyncio.run(scenario())
	assert server.stylesheet_requests == ["Roboto"]
	assert server.file_requests == 2
	assert service.is_loaded("Roboto")
	cached = service.get_cached("Roboto")
	assert cached is not None
	assert sorted(cached.files) == [400, 700]


#============================================
def test_overlapping_loads_share_one_fetch() -> None:
	"""
	Concurrent loads of the same family issue a single stylesheet request.
	"""
	server = FontServer({"Roboto", "Lato"})

	async def slow_server(request: httpx.Request) -> httpx.Response:
		await asyncio.sleep(0.01)
		return server(request)

	client = httpx.AsyncClient(transport=httpx.MockTransport(slow_server))
	service = wordcloud_dossier_press.fonts.FontAcquisitionService(client=client, sleep=_no_sleep)

	async def scenario() -> None:
		await asyncio.gather(service.load(["Roboto"]), service.load(["Roboto", "Lato"]))

	asyncio.run(scenario())
	assert server.stylesheet_requests.count("Roboto") == 1
	assert server.stylesheet_requests.count("Lato") == 1
	assert service.is_loaded("Roboto")
	assert service.is_loaded("Lato")
	assert server.file_requests == 4


#============================================
def test_failed_family_is_not_retried() -> None:
	"""
	Exhausted retries mark a family failed for the rest of the session.
	"""
	server = FontServer(set())
	delays: list[float] = []

	async def record_sleep(delay: float) -> None:
		delays.append(delay)

	client = httpx.AsyncClient(transport=httpx.MockTransport(server))
	service = wordcloud_dossier_press.fonts.FontAcquisitionService(client=client, sleep=record_sleep)

	async def scenario() -> None:
		await service.load(["Lato"])
		await service.load(["Lato"])

	asyncio.run(scenario())
	assert server.stylesheet_requests == ["Lato", "Lato", "Lato"]
	assert delays == [1.0, 1.5]
	assert service.is_failed("Lato")
	assert not service.is_loaded("Lato")
	assert service.stats() == {"cached": 0, "loaded": 0, "failed": 1}


#============================================
def test_clear_cache_allows_refetch() -> None:
	"""
	clear_cache() forgets both loaded and failed families.
	"""
	server = FontServer(set())
	service = _build_service(server)
	asyncio.run(service.load(["Lato"]))
	service.clear_cache()
	assert not service.is_failed("Lato")
	server.reachable.add("Lato")
	asyncio.run(service.load(["Lato"]))
	assert service.is_loaded("Lato")


#============================================
def test_unknown_family_fails_without_fetch() -> None:
	"""
	Families outside the catalog are never requested.
	"""
	server = FontServer({"Comic Sans"})
	service = _build_service(server)
	asyncio.run(service.load(["Comic Sans"]))
	assert server.stylesheet_requests == []
	assert service.is_failed("Comic Sans")


#============================================
def test_system_fonts_need_no_network() -> None:
	"""
	PDF standard fonts are loaded immediately.
	"""
	server = FontServer(set())
	service = _build_service(server)
	asyncio.run(service.load(["Helvetica", "Courier"]))
	assert server.stylesheet_requests == []
	assert service.is_loaded("Helvetica")
	assert service.resolve("Courier").family == "Courier"


#============================================
def test_slow_font_times_out() -> None:
	"""
	Each attempt is bounded by the font timeout.
	"""

	async def slow_handler(request: httpx.Request) -> httpx.Response:
		await asyncio.sleep(5.0)
		return httpx.Response(200, text=FONT_CSS)

	config = wordcloud_dossier_press.config.PerformanceConfig(font_timeout=0.01, font_retry_attempts=2)
	client = httpx.AsyncClient(transport=httpx.MockTransport(slow_handler))
	service = wordcloud_dossier_press.fonts.FontAcquisitionService(config, client=client, sleep=_no_sleep)
	asyncio.run(service.load(["Roboto"]))
	assert service.is_failed("Roboto")


#============================================
def test_random_combination_is_deterministic_with_seed() -> None:
	"""
	The injected random source drives font selection.
	"""
	first = wordcloud_dossier_press.fonts.FontAcquisitionService(rng=random.Random(3))
	second = wordcloud_dossier_press.fonts.FontAcquisitionService(rng=random.Random(3))
	picks = first.random_font_combination(5)
	assert picks == second.random_font_combination(5)
	assert len({font.family for font in picks}) == 5


#============================================
def test_no_network_falls_back_to_system_fonts() -> None:
	"""
	With every network font failing, the system tier is returned.
	"""
	server = FontServer(set())
	service = _build_service(server)
	fonts = asyncio.run(service.preload_for_word_cloud(20))
	assert fonts
	assert [font.family for font in fonts] == [
		font.family for font in wordcloud_dossier_press.fonts.SYSTEM_FONTS
	]


#============================================
def test_partial_success_returns_loaded_fonts() -> None:
	"""
	Twelve requested families with three reachable still yields fonts.
	"""
	catalog = wordcloud_dossier_press.fonts.WORD_CLOUD_FONTS[:12]
	reachable = {font.family for font in catalog[:3]}
	server = FontServer(reachable)
	service = _build_service(server, catalog=catalog)
	fonts = asyncio.run(service.preload_for_word_cloud(60))
	assert len(fonts) >= 3
	assert {font.family for font in fonts} == reachable
	assert len(set(server.stylesheet_requests)) == 12


#============================================
def test_catalog_accessors() -> None:
	"""
	The catalog is exposed and weights come from the font's own list.
	"""
	service = wordcloud_dossier_press.fonts.FontAcquisitionService(rng=random.Random(2))
	catalog = service.available_fonts()
	assert len(catalog) == 15
	font = catalog[0]
	assert service.random_weight(font) in font.weights
