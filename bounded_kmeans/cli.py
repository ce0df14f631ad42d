"""
Command line entry point: cluster a data file and report the result.

Examples:
    bounded-kmeans points.npy -k 10
    bounded-kmeans points.csv -k 5 --algorithm hamerly --varstat --output result.json
"""

import argparse
import json
import os
import sys
import time

import numpy as np

from .distance import DISTANCES
from .engine import VARIANTS, BoundedAssignmentEngine, KMeansConfig
from .initialization import INIT_METHODS, initialize_centers
from .store import VectorStore


def load_data(path: str, delimiter=None) -> np.ndarray:
    """Load an (n, d) matrix from a .npy file or a delimited text file."""
    if path.endswith(".npy"):
        return np.load(path)
    if delimiter is None and path.endswith(".csv"):
        delimiter = ","
    return np.loadtxt(path, delimiter=delimiter, ndmin=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bounded-kmeans",
        description="Accelerated k-means clustering (Lloyd / Hamerly / Annulus)",
    )
    parser.add_argument("input", help="Data file (.npy, .csv or whitespace separated text)")
    parser.add_argument("-k", type=int, required=True, help="Number of clusters")
    parser.add_argument("--max-iter", type=int, default=300,
                        help="Maximum number of iterations")
    parser.add_argument("--init", choices=INIT_METHODS, default="k-means++",
                        help="Initialization method")
    parser.add_argument("--distance", choices=sorted(DISTANCES), default="sqeuclidean",
                        help="Distance function")
    parser.add_argument("--algorithm", choices=VARIANTS, default="annulus",
                        help="Assignment algorithm")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--delimiter", default=None, help="Column delimiter for text input")
    parser.add_argument("--varstat", action="store_true",
                        help="Compute per-cluster variance statistics")
    parser.add_argument("--output", default=None, help="Write the result as JSON to this file")
    parser.add_argument("--verbose", action="store_true", help="Print progress information")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if not os.path.exists(args.input):
        print(f"Input file not found: {args.input}", file=sys.stderr)
        return 1

    try:
        store = VectorStore(load_data(args.input, args.delimiter))
        config = KMeansConfig(
            k=args.k,
            max_iter=args.max_iter,
            distance=args.distance,
            variant=args.algorithm,
            varstat=args.varstat,
            verbose=args.verbose,
        )
        centers = initialize_centers(store.data, args.k, args.init, args.seed)
        engine = BoundedAssignmentEngine(store, centers, config)
    except ValueError as e:  # ConfigurationError or unreadable data
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    start_time = time.time()
    state = engine.run()
    fit_time = time.time() - start_time
    result = engine.result()

    print(f"Points: {len(store)}, dimensions: {store.dim}, k: {args.k}")
    print(f"Algorithm: {result.variant}, distance: {args.distance}")
    print(f"State: {state.value} after {result.n_iter} iterations ({fit_time:.3f}s)")
    print(f"Inertia: {result.inertia:.4f}")
    print(f"Distance computations: {result.distance_computations}")
    for cluster in result.clusters:
        line = f"  {cluster.name}: {cluster.size} points"
        if cluster.variance is not None:
            line += f", variance sum {cluster.variance:.4f}"
        print(line)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"\nResults saved to: {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
