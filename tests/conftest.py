import pytest
from fastapi.testclient import TestClient

from chart_analyzer.app.config import Settings
from chart_analyzer.app.main import create_app

PNG_HEADER = b"\x89PNG\r\n\x1a\n"
JPEG_HEADER = b"\xff\xd8\xff\xe0"

HEAD_AND_SHOULDERS = (
    '{"pattern":"Head and Shoulders","confidence":"High","trend":"Bearish","explanation":"test"}'
)


def make_image(size: int, header: bytes = PNG_HEADER) -> bytes:
    return header + b"\0" * (size - len(header))


class FakeAnalysisClient:
    """Stands in for GeminiChartClient; records every payload it receives."""

    model_name = "fake-model"

    def __init__(self, reply: str = HEAD_AND_SHOULDERS, error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    def analyze(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def sample_chart(tmp_path):
    path = tmp_path / "test-chart.png"
    path.write_bytes(make_image(2048))
    return path


@pytest.fixture
def settings(sample_chart):
    return Settings(api_key=None, sample_chart_path=str(sample_chart))


@pytest.fixture
def fake_client():
    return FakeAnalysisClient()


@pytest.fixture
def client(settings, fake_client):
    return TestClient(create_app(settings=settings, analysis_client=fake_client))
