"""
Pytest configuration for local imports and shared image fixtures.
"""

# Standard Library
import base64
import io
import os
import sys

# PIP3 modules
import PIL.Image
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()


#============================================
def build_png_data_url(width: int, height: int, mode: str = "RGB", noisy: bool = False) -> str:
	"""
	Build a PNG data URL for tests.

	Args:
		width: Image width.
		height: Image height.
		mode: PIL mode.
		noisy: Fill with random bytes so the image compresses poorly.

	Returns:
		Data URL string.
	"""
	if noisy:
		image = PIL.Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
		if mode != "RGB":
			image = image.convert(mode)
	else:
		image = PIL.Image.new(mode, (width, height), "red" if mode != "L" else 128)
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	payload = base64.b64encode(buffer.getvalue()).decode("ascii")
	return f"data:image/png;base64,{payload}"


@pytest.fixture
def png_data_url() -> str:
	return build_png_data_url(40, 30)


@pytest.fixture
def png_factory():
	return build_png_data_url
