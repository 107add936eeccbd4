"""
Basic usage example for ivfdb.
"""

import tempfile
from pathlib import Path

import numpy as np

from ivfdb import VectorEngine


def make_data(n_vectors: int = 20000, dimension: int = 64, n_centers: int = 100):
    rng = np.random.RandomState(0)
    centers = rng.randn(n_centers, dimension).astype(np.float32) * 5
    labels = rng.randint(0, n_centers, size=n_vectors)
    return (centers[labels] + rng.randn(n_vectors, dimension)).astype(np.float32)


def main():
    print("=" * 60)
    print("ivfdb Basic Usage Example")
    print("=" * 60)

    vectors = make_data()
    dimension = vectors.shape[1]
    wal_path = Path(tempfile.mkdtemp(prefix="ivfdb_example_")) / "ivfdb.wal"

    # 1. Create engine
    print("\n1. Creating engine...")
    engine = VectorEngine(dimension=dimension, n_lists=128, wal_path=wal_path)
    print(f"   Created: {engine}")

    # 2. Add vectors
    print("\n2. Adding vectors...")
    first = engine.add(vectors[0])
    ids = engine.add_batch(vectors[1:])
    print(f"   First id: {first}, batch ids: {ids.start}..{ids.stop - 1}")
    print(f"   Total stored: {engine.count}")

    # 3. Build the index
    print("\n3. Building IVF index...")
    engine.build()
    index_stats = engine.index.stats().to_dict()
    print(f"   Training: {index_stats['training_state']} "
          f"after {index_stats['training_iterations']} iterations")
    print(f"   Cluster sizes: {index_stats['cluster_sizes']}")

    # 4. Search
    print("\n4. Searching...")
    query = vectors[123] + 0.05 * np.random.randn(dimension).astype(np.float32)
    for result in engine.search(query, top_k=5):
        print(f"   id={result.id:6d} distance={result.distance:.4f}")

    # 5. Trade speed for recall
    print("\n5. Probe budget vs. recall...")
    exact = {r.id for r in engine.search_exact(query, top_k=10)}
    for max_nprobe in (1, 5, 20):
        found = {r.id for r in engine.search(query, top_k=10, max_nprobe=max_nprobe)}
        print(f"   max_nprobe={max_nprobe:3d}: recall@10 = {len(found & exact) / 10:.1f}")

    engine.close()

    # 6. Recover from the write-ahead log
    print("\n6. Recovering from the write-ahead log...")
    with VectorEngine(dimension=dimension, n_lists=128, wal_path=wal_path) as restored:
        count = restored.recover()
        print(f"   Restored {count} vectors, index built: {restored.is_built}")
        print(f"   Same top hit: {restored.search(query, top_k=1)[0].id}")

    print("\n" + "=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
