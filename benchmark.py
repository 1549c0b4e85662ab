import argparse
import logging
from pathlib import Path
from tempfile import TemporaryDirectory
from timeit import timeit

from flatkv import FlatFileStore
from flatkv.logging import configure_logging

logger = logging.getLogger("benchmark")

benchmark_fns = []


def benchmark(fn):
    benchmark_fns.append(fn)
    return fn


def fill(store: FlatFileStore, keys: int):
    for i in range(keys):
        store[f"key_{i}"] = {"value": i, "label": f"value_{i}"}


@benchmark
def repeated_saves(path: Path, iterations: int, keys: int):
    """Repeatedly saves the same map.

    Every save rewrites the whole file and copies the previous one into a backup, so this is
    roughly write-throughput for a map of this size.
    """
    store = FlatFileStore(path)
    fill(store, keys)
    return timeit(store.save, number=iterations)


@benchmark
def repeated_loads(path: Path, iterations: int, keys: int):
    """Repeatedly reloads a map saved once up front."""
    store = FlatFileStore(path)
    fill(store, keys)
    store.save()
    return timeit(store.reload, number=iterations)


@benchmark
def save_then_load(path: Path, iterations: int, keys: int):
    """Alternates a single-key change, a save and a fresh load."""
    store = FlatFileStore(path)
    fill(store, keys)
    numbers = iter(range(iterations))

    def workload():
        i = next(numbers)
        store["counter"] = i
        store.save()
        assert FlatFileStore(path)["counter"] == i

    return timeit(workload, number=iterations)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run benchmarks on flatkv stores.")
    parser.add_argument(
        "--iterations",
        dest="iterations",
        type=int,
        default=100,
        help="Number of iterations to run for each benchmark",
    )
    parser.add_argument(
        "--keys",
        dest="keys",
        type=int,
        default=1000,
        help="Number of keys in the stored map",
    )
    args = parser.parse_args()
    configure_logging()
    line = "=============================="
    print(line)
    for benchmark_fn in benchmark_fns:
        print(f"Running: {benchmark_fn.__name__}")
        print(benchmark_fn.__doc__)
        with TemporaryDirectory() as tmpdir:
            time_taken = benchmark_fn(Path(tmpdir) / "db", args.iterations, args.keys)
        logger.info("%s finished", benchmark_fn.__name__, extra={"event_type": "benchmark"})
        print(f"Completed in {time_taken:.4f} seconds")
        print(line)
