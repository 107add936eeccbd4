"""
Example client for the ivfdb REST API.

Start the server first:
    $ python -m ivfdb.server --port 8000
"""

import requests
import numpy as np
from typing import Any, Dict, List, Optional


class IVFDBClient:
    """
    Python client for the ivfdb REST API.

    Example:
        >>> client = IVFDBClient("http://localhost:8000")
        >>> client.add_vectors(vectors)
        >>> client.build()
        >>> results = client.search(query_vector, top_k=10)
    """

    def __init__(self, base_url: str = "http://localhost:8000"):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/api/v1"

    def _url(self, path: str) -> str:
        return f"{self.base_url}{self.api_prefix}{path}"

    def _request(self, method: str, path: str, json: Any = None) -> Dict:
        response = requests.request(method, self._url(path), json=json)
        response.raise_for_status()
        return response.json()

    # =========================================================================
    # Health & Info
    # =========================================================================

    def health(self) -> Dict:
        """Check server health."""
        return self._request("GET", "/health")

    def stats(self) -> Dict:
        """Get engine statistics."""
        return self._request("GET", "/stats")

    # =========================================================================
    # Vectors
    # =========================================================================

    def add_vector(self, vector: List[float]) -> int:
        """Add one vector, returning its id."""
        return self._request("POST", "/vectors", json={"vector": list(vector)})["id"]

    def add_vectors(self, vectors: np.ndarray) -> List[int]:
        """Add a batch of vectors, returning their ids."""
        response = self._request(
            "POST",
            "/vectors/batch",
            json={"vectors": np.asarray(vectors).tolist()},
        )
        return response["ids"]

    def get_vector(self, vector_id: int) -> List[float]:
        return self._request("GET", f"/vectors/{vector_id}")["vector"]

    # =========================================================================
    # Index & Search
    # =========================================================================

    def build(self) -> Dict:
        """Rebuild the IVF index."""
        return self._request("POST", "/build")

    def search(
        self,
        vector: List[float],
        top_k: int = 10,
        max_nprobe: Optional[int] = None,
        probe_ratio: Optional[float] = None,
    ) -> List[Dict]:
        """Search for nearest neighbors."""
        body = {"vector": list(map(float, vector)), "top_k": top_k}
        if max_nprobe is not None:
            body["max_nprobe"] = max_nprobe
        if probe_ratio is not None:
            body["probe_ratio"] = probe_ratio
        return self._request("POST", "/search", json=body)["results"]


def main():
    client = IVFDBClient()
    print(f"Server: {client.health()}")

    dimension = client.stats()["dimension"]
    vectors = np.random.randn(2000, dimension).astype(np.float32)

    ids = client.add_vectors(vectors)
    print(f"Added {len(ids)} vectors")

    build = client.build()
    print(f"Built {build['n_lists']} lists in {build['build_time_ms']:.1f} ms")

    for result in client.search(vectors[7], top_k=3):
        print(f"  id={result['id']} distance={result['distance']:.4f}")


if __name__ == "__main__":
    main()
