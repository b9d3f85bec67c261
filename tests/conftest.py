import pytest

from mockserver import RecordingHandler


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()
