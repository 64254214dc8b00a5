import pytest
from fastapi.testclient import TestClient

from config import Settings
from core.exceptions import UpstreamError
from main import create_app
from services.storage import LocalFileStore, PredictionStore

AL_TEAMS = [
    "NYY", "BAL", "TOR", "TB", "BOS",
    "CLE", "KC", "DET", "MIN", "CWS",
    "HOU", "SEA", "TEX", "LAA", "OAK",
]
NL_TEAMS = [
    "PHI", "ATL", "NYM", "WSH", "MIA",
    "MIL", "STL", "CHC", "CIN", "PIT",
    "LAD", "SD", "ARI", "SF", "COL",
]


class MemoryStore(PredictionStore):
    """In-memory store that hands out an incrementing version token."""

    name = "memory"

    def __init__(self, data=None):
        self.data = dict(data or {})
        self.version = 0
        self.loads = 0
        self.saves = []

    def load(self):
        self.loads += 1
        return dict(self.data), f"v{self.version}"

    def save(self, data, version=None):
        self.saves.append(version)
        self.data = dict(data)
        self.version += 1


class BrokenStore(PredictionStore):
    name = "broken"

    def load(self):
        raise UpstreamError("GitHub read failed: 502")

    def save(self, data, version=None):
        raise UpstreamError("GitHub write failed: 502")



class ExplodingStore(MemoryStore):
    """Store whose save fails with an error outside the application taxonomy."""

    def save(self, data, version=None):
        raise RuntimeError("disk on fire at /var/secret")

@pytest.fixture
def submission():
    return {"name": "Bob", "al": list(AL_TEAMS), "nl": list(NL_TEAMS)}


@pytest.fixture
def predictions_file(tmp_path):
    return tmp_path / "predictions.json"


@pytest.fixture
def local_store(predictions_file):
    return LocalFileStore(predictions_file)


@pytest.fixture
def local_client(local_store):
    app = create_app(Settings(api_variant="local", environment="test"), store=local_store)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def remote_client(memory_store):
    app = create_app(
        Settings(api_variant="remote", environment="test", github_token="test-token"),
        store=memory_store,
    )
    with TestClient(app) as client:
        yield client
