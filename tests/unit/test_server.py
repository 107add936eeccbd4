"""
Tests for the ivfdb REST API server.
"""

import pytest

pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from ivfdb import VectorEngine
from ivfdb.server.app import create_app
from ivfdb.server.config import ServerConfig, set_config
from ivfdb.server.dependencies import EngineManager


POINTS = [
    [0.0, 0.0, 0.0, 0.0],
    [0.0, 0.0, 0.0, 1.0],
    [10.0, 10.0, 10.0, 10.0],
    [10.0, 10.0, 10.0, 11.0],
]


@pytest.fixture
def client(tmp_path):
    """Create test client around a small in-process engine."""
    config = ServerConfig(
        config_path=str(tmp_path / "absent.yaml"),
        recover_on_startup=False,
        max_queries_per_request=2,
    )
    set_config(config)
    EngineManager.set_engine(VectorEngine(dimension=4, n_lists=2, num_threads=1))

    app = create_app(config)

    with TestClient(app) as client:
        yield client

    EngineManager.shutdown()


@pytest.fixture
def loaded(client):
    response = client.post("/api/v1/vectors/batch", json={"vectors": POINTS})
    assert response.status_code == 201
    return client


@pytest.fixture
def built(loaded):
    response = loaded.post("/api/v1/build")
    assert response.status_code == 200
    return loaded


class TestHealthEndpoint:
    """Health endpoint tests."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_root(self, client):
        assert client.get("/").json()["api"] == "/api/v1"


class TestVectorEndpoints:
    """Vector endpoint tests."""

    def test_add_vector(self, client):
        response = client.post("/api/v1/vectors", json={"vector": [1, 2, 3, 4]})

        assert response.status_code == 201
        assert response.json() == {"success": True, "id": 0}

    def test_add_wrong_dimension(self, client):
        response = client.post("/api/v1/vectors", json={"vector": [1, 2]})

        assert response.status_code == 400
        assert response.json()["error"] == "dimension_mismatch"

    def test_add_batch(self, client):
        response = client.post("/api/v1/vectors/batch", json={"vectors": POINTS})

        assert response.status_code == 201
        data = response.json()
        assert data["added_count"] == 4
        assert data["ids"] == [0, 1, 2, 3]

    def test_add_batch_rejects_ragged_rows(self, client):
        response = client.post(
            "/api/v1/vectors/batch",
            json={"vectors": [[1, 2, 3, 4], [1, 2, 3]]},
        )

        assert response.status_code == 400
        assert client.get("/api/v1/stats").json()["count"] == 0

    def test_add_empty_batch(self, client):
        response = client.post("/api/v1/vectors/batch", json={"vectors": []})

        assert response.status_code == 422

    def test_get_vector(self, loaded):
        response = loaded.get("/api/v1/vectors/3")

        assert response.status_code == 200
        assert response.json()["vector"] == POINTS[3]

    def test_get_missing_vector(self, loaded):
        response = loaded.get("/api/v1/vectors/10")

        assert response.status_code == 404
        assert response.json()["error"] == "index_out_of_range"


class TestIndexEndpoints:
    """Build and search endpoint tests."""

    def test_build_with_too_few_vectors(self, client):
        client.post("/api/v1/vectors", json={"vector": [1, 2, 3, 4]})

        response = client.post("/api/v1/build")

        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_data"

    def test_build(self, loaded):
        response = loaded.post("/api/v1/build")

        assert response.status_code == 200
        data = response.json()
        assert data["indexed_count"] == 4
        assert data["n_lists"] == 2
        assert data["training_state"] == "converged"

    def test_search_before_build(self, loaded):
        response = loaded.post("/api/v1/search", json={"vector": POINTS[0]})

        assert response.status_code == 409
        assert response.json()["error"] == "not_trained"

    def test_search(self, built):
        response = built.post(
            "/api/v1/search",
            json={"vector": POINTS[2], "top_k": 1, "max_nprobe": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["results"][0] == {"id": 2, "distance": 0.0}

    def test_search_invalid_top_k(self, built):
        response = built.post("/api/v1/search", json={"vector": POINTS[0], "top_k": 0})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_parameter"

    def test_search_wrong_dimension(self, built):
        response = built.post("/api/v1/search", json={"vector": [1.0]})

        assert response.status_code == 400

    def test_batch_search(self, built):
        response = built.post(
            "/api/v1/search/batch",
            json={"vectors": [POINTS[0], POINTS[3]], "top_k": 1},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_queries"] == 2
        assert [r[0]["id"] for r in data["results"]] == [0, 3]

    def test_batch_search_limit(self, built):
        response = built.post(
            "/api/v1/search/batch",
            json={"vectors": POINTS[:3]},
        )

        assert response.status_code == 413

    def test_stats(self, built):
        response = built.get("/api/v1/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["dimension"] == 4
        assert data["count"] == 4
        assert data["indexed"] == 4
        assert data["index"]["n_lists"] == 2
        assert data["wal"]["enabled"] is False
