import pytest
from fastapi.testclient import TestClient

from chart_analyzer.app.config import Settings
from chart_analyzer.app.errors import (
    ProviderBillingError,
    ProviderContentError,
    ProviderRateLimitError,
    ProviderUnknownError,
)
from chart_analyzer.app.main import create_app

from .conftest import HEAD_AND_SHOULDERS, JPEG_HEADER, FakeAnalysisClient, make_image

MB = 1000 * 1000


def _upload(client, data, content_type="image/png", filename="chart.png"):
    return client.post("/analyze", files={"image": (filename, data, content_type)})


def test_upload_success_envelope(client, fake_client):
    response = _upload(client, make_image(4096))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["analysis"] == HEAD_AND_SHOULDERS
    assert body["timestamp"]
    assert body["image_info"] == {
        "source": "upload",
        "filename": "chart.png",
        "size": 4096,
        "media_type": "image/png",
    }
    assert "error" not in body
    assert len(fake_client.calls) == 1
    assert fake_client.calls[0].size == 4096


def test_sample_success_envelope(client, fake_client, sample_chart):
    response = client.get("/analyze")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["analysis"] == HEAD_AND_SHOULDERS
    assert body["image_info"]["source"] == "sample"
    assert body["image_info"]["filename"] == "test-chart.png"
    assert body["image_info"]["size"] == sample_chart.stat().st_size
    assert len(fake_client.calls) == 1


def test_six_megabyte_png_rejected_without_provider_call(client, fake_client):
    response = _upload(client, make_image(6 * MB))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "Maximum 5MB" in body["error"]
    assert fake_client.calls == []


def test_two_megabyte_jpeg_rate_limited(settings):
    fake = FakeAnalysisClient(error=ProviderRateLimitError("Rate limit exceeded. Please try again later."))
    client = TestClient(create_app(settings=settings, analysis_client=fake))

    response = _upload(client, make_image(2 * MB, JPEG_HEADER), "image/jpeg", "chart.jpg")

    assert response.status_code == 429
    assert "rate limit" in response.json()["error"].lower()
    assert len(fake.calls) == 1


def test_missing_sample_returns_404(fake_client, tmp_path):
    settings = Settings(sample_chart_path=str(tmp_path / "missing.png"))
    client = TestClient(create_app(settings=settings, analysis_client=fake_client))

    response = client.get("/analyze")

    assert response.status_code == 404
    body = response.json()
    assert "Test chart not found" in body["error"]
    assert fake_client.calls == []


def test_missing_image_field(client, fake_client):
    response = client.post("/analyze", data={"other": "value"})

    assert response.status_code == 400
    assert response.json()["error"] == "No image file provided"
    assert fake_client.calls == []


def test_non_image_upload(client, fake_client):
    response = _upload(client, b"hello", "text/plain", "notes.txt")

    assert response.status_code == 400
    assert response.json()["error"] == "File must be an image"
    assert fake_client.calls == []


def test_empty_upload(client, fake_client):
    response = _upload(client, b"")

    assert response.status_code == 400
    assert fake_client.calls == []


@pytest.mark.parametrize(
    "error, status",
    [
        (ProviderBillingError("Insufficient credits."), 402),
        (ProviderContentError("Could not process image.", details="bad image"), 400),
        (ProviderRateLimitError("Rate limit exceeded."), 429),
        (ProviderUnknownError("Analysis failed", details="RuntimeError: boom"), 500),
    ],
)
def test_provider_errors_map_to_status(settings, error, status):
    client = TestClient(create_app(settings=settings, analysis_client=FakeAnalysisClient(error=error)))

    for response in (client.get("/analyze"), _upload(client, make_image(100))):
        assert response.status_code == status
        body = response.json()
        assert body["success"] is False
        assert body["error"] == error.message
        if error.details:
            assert body["details"] == error.details
        else:
            assert "details" not in body


def test_unparseable_model_reply_still_succeeds(settings):
    fake = FakeAnalysisClient(reply="```json\n{}\n```")
    client = TestClient(create_app(settings=settings, analysis_client=fake))

    response = _upload(client, make_image(100))

    assert response.status_code == 200
    assert response.json()["analysis"] == "```json\n{}\n```"


def test_startup_without_api_key_fails(settings):
    app = create_app(settings=settings)
    with pytest.raises(Exception):
        with TestClient(app):
            pass
    assert app.state.analysis_client is None


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "model": "gemini-1.5-flash-002"}


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "lastAnalysisResult" in response.text


def test_image_sent_as_text_field(client, fake_client):
    response = client.post("/analyze", data={"image": "not-a-file"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "uploaded file" in body["error"]
    assert "image" in body["details"]
    assert "detail" not in body
    assert fake_client.calls == []


def test_index_page_only_uses_known_class_names(client):
    html = client.get("/").text
    assert 'CLASS_NAMES = ["High", "Medium", "Low", "Bullish", "Bearish", "Sideways"]' in html
    assert 'class="${cls' not in html
