import io
from types import SimpleNamespace

import pytest
import requests
from google.api_core import exceptions as google_exceptions
from PIL import Image

from providers import gemini
from providers.base import GarmentType, ProviderError
from providers.gemini import GeminiGarmentGenerator, GeminiOutfitCritic, NoImageReturned
from providers.local_stub import LocalBackgroundRemover
from providers.remote import RemoteError, RemoteImageFetcher
from providers.remove_bg import RemoveBgClient, RemoveBgError

from conftest import decode, png


class FakeResponse:
    def __init__(self, status_code=200, content=b"", payload=None, headers=None):
        self.status_code = status_code
        self.content = content
        self.text = content.decode("utf-8", "replace")
        self.headers = headers or {}
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def calls():
    return []


def test_remove_bg_sends_multipart_with_key(monkeypatch, calls):
    cutout = png((4, 4), (0, 0, 0, 0))

    def fake_post(url, **kw):
        calls.append((url, kw))
        return FakeResponse(content=cutout)

    monkeypatch.setattr(requests, "post", fake_post)
    out = RemoveBgClient(api_key="k123").remove_background(b"jpegbytes", "me.jpg")

    assert out == cutout
    url, kw = calls[0]
    assert url == "https://api.remove.bg/v1.0/removebg"
    assert kw["headers"] == {"X-Api-Key": "k123"}
    assert kw["files"]["image_file"] == ("me.jpg", b"jpegbytes", "image/jpeg")
    assert kw["data"] == {"size": "auto"}


def test_remove_bg_error_carries_details(monkeypatch):
    monkeypatch.setattr(requests, "post", lambda url, **kw: FakeResponse(402, b'{"errors":[{"title":"Insufficient credits"}]}'))
    with pytest.raises(RemoveBgError) as ei:
        RemoveBgClient(api_key="k").remove_background(b"x")
    assert str(ei.value) == "remove.bg failed"
    assert "Insufficient credits" in ei.value.detail


def test_remove_bg_without_key(monkeypatch):
    monkeypatch.delenv("REMOVE_BG_API_KEY", raising=False)
    with pytest.raises(RemoveBgError, match="REMOVE_BG_API_KEY"):
        RemoveBgClient().remove_background(b"x")


def test_remove_bg_network_failure(monkeypatch):
    def boom(url, **kw):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(requests, "post", boom)
    with pytest.raises(ProviderError):
        RemoveBgClient(api_key="k").remove_background(b"x")


class FakeModel:
    """Stands in for genai.GenerativeModel; records every generate_content call."""

    def __init__(self, model_name, parts=None, error=None):
        self.model_name = model_name
        self.parts = parts or []
        self.error = error
        self.calls = []

    def generate_content(self, contents, generation_config=None, request_options=None):
        self.calls.append((contents, generation_config, request_options))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=self.parts))])


@pytest.fixture
def gemini_model(monkeypatch):
    made = []

    def install(parts=None, error=None):
        def factory(model_name):
            m = FakeModel(model_name, parts, error)
            made.append(m)
            return m

        monkeypatch.setattr(gemini.genai, "configure", lambda **kw: None)
        monkeypatch.setattr(gemini.genai, "GenerativeModel", factory)
        return made

    return install


def test_gemini_garment_returns_inline_image(gemini_model):
    image = png((3, 3), (1, 2, 3, 255))
    made = gemini_model(parts=[SimpleNamespace(text="here", inline_data=None), SimpleNamespace(text="", inline_data=SimpleNamespace(mime_type="image/png", data=image))])
    out = GeminiGarmentGenerator(api_key="g", model="m").generate(png((2, 2), (9, 9, 9, 255)), GarmentType.KURTA)

    assert out == image
    model = made[0]
    assert model.model_name == "m"
    contents, config, _ = model.calls[0]
    assert config["temperature"] == 0.4
    assert "men's kurta" in contents[0]
    assert contents[1].size == (2, 2)


def test_gemini_without_image_part(gemini_model):
    gemini_model(parts=[SimpleNamespace(text="sorry", inline_data=None)])
    with pytest.raises(NoImageReturned, match="AI did not return an image."):
        GeminiGarmentGenerator(api_key="g").generate(png((2, 2), (9, 9, 9, 255)), GarmentType.BLAZER)


def test_gemini_without_key(monkeypatch, gemini_model):
    gemini_model()
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(ProviderError, match="GEMINI_API_KEY"):
        GeminiOutfitCritic().critique(png((2, 2), (0, 0, 0, 255)))


def test_gemini_critic_joins_text(gemini_model):
    gemini_model(parts=[SimpleNamespace(text="Fits well. "), SimpleNamespace(text="Add a stole.")])
    assert GeminiOutfitCritic(api_key="g").critique(png((2, 2), (0, 0, 0, 255))) == "Fits well. Add a stole."


def test_gemini_api_error(gemini_model):
    gemini_model(error=google_exceptions.InternalServerError("backend down"))
    with pytest.raises(ProviderError) as ei:
        GeminiOutfitCritic(api_key="g").critique(png((2, 2), (0, 0, 0, 255)))
    assert "backend down" in ei.value.detail


def test_gemini_rejects_undecodable_input(gemini_model):
    made = gemini_model(parts=[SimpleNamespace(text="unused")])
    with pytest.raises(ProviderError):
        GeminiOutfitCritic(api_key="g").critique(b"not an image")
    assert made[0].calls == []


def test_local_remover_keys_out_plain_backdrop():
    im = Image.new("RGB", (20, 20), (240, 240, 240))
    im.paste((20, 20, 120), (6, 6, 14, 14))
    buf = io.BytesIO()
    im.save(buf, format="PNG")

    out = decode(LocalBackgroundRemover().remove_background(buf.getvalue()))
    assert out.getpixel((0, 0))[3] == 0
    assert out.getpixel((10, 10))[3] > 200


def test_local_remover_rejects_garbage():
    with pytest.raises(ProviderError):
        LocalBackgroundRemover().remove_background(b"nope")


def test_remote_fetch_checks_content_type(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, **kw: FakeResponse(content=b"<html>", headers={"content-type": "text/html"}))
    with pytest.raises(RemoteError):
        RemoteImageFetcher().fetch("https://example.invalid/a.png")


def test_remote_fetch_returns_bytes(monkeypatch):
    data = png((2, 2), (0, 0, 0, 255))
    monkeypatch.setattr(requests, "get", lambda url, **kw: FakeResponse(content=data, headers={"content-type": "image/png"}))
    assert RemoteImageFetcher().fetch("https://example.invalid/a.png") == data
