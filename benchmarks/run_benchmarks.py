#!/usr/bin/env python3
"""Benchmark suite for pyredirects: empirical false-positive rate and latency."""

import argparse
import json
import random
import time
from pathlib import Path
from typing import Dict, List

import numpy as np
import plotly.graph_objects as go
from tqdm import tqdm

from pyredirects import BloomFilter, build_filter

class Metrics:
    def __init__(self, num_keys: int, error_rate: float):
        self.num_keys = num_keys
        self.error_rate = error_rate
        self.build_time: float = 0.0
        self.query_latencies: List[float] = []
        self.decode_latencies: List[float] = []
        self.false_positives: int = 0
        self.probes: int = 0
        self.record_size: int = 0

    def to_dict(self) -> Dict:
        return {
            "num_keys": self.num_keys,
            "target_error_rate": self.error_rate,
            "observed_error_rate": self.false_positives / self.probes if self.probes else 0.0,
            "build_time_ms": self.build_time,
            "record_size_bytes": self.record_size,
            "query_latencies": {
                "p50": np.percentile(self.query_latencies, 50),
                "p95": np.percentile(self.query_latencies, 95),
                "p99": np.percentile(self.query_latencies, 99),
            },
            "decode_latencies": {
                "p50": np.percentile(self.decode_latencies, 50),
                "p99": np.percentile(self.decode_latencies, 99),
            },
        }

def plot_error_rates(results: List[Metrics], output_path: Path):
    fig = go.Figure()
    for rate in sorted({m.error_rate for m in results}):
        rows = [m for m in results if m.error_rate == rate]
        fig.add_trace(go.Scatter(
            x=[m.num_keys for m in rows],
            y=[m.to_dict()["observed_error_rate"] for m in rows],
            mode="lines+markers",
            name=f"target {rate:g}",
        ))

    fig.update_layout(
        title="Observed false-positive rate",
        xaxis_title="Keys",
        yaxis_title="False-positive rate",
        yaxis_type="log",
    )

    fig.write_html(output_path)

class BenchmarkSuite:
    def __init__(self, num_keys: int, num_probes: int, seed: int = 0):
        rng = random.Random(seed)
        self.num_keys = num_keys
        self._keys = [f"/redirect/{rng.getrandbits(64):016x}" for _ in range(num_keys)]
        self._probes = [f"/page/{rng.getrandbits(64):016x}" for _ in range(num_probes)]

    def run(self, error_rate: float, decode_rounds: int = 20) -> Metrics:
        metrics = Metrics(self.num_keys, error_rate)

        start = time.perf_counter()
        bf = build_filter(self._keys, error_rate)
        metrics.build_time = (time.perf_counter() - start) * 1000

        payload = bf.to_json()
        metrics.record_size = len(payload.encode())

        # Consumer side: decode once per request
        for _ in range(decode_rounds):
            start = time.perf_counter()
            BloomFilter.from_json(payload)
            metrics.decode_latencies.append((time.perf_counter() - start) * 1000)

        for probe in tqdm(self._probes, desc=f"n={self.num_keys} p={error_rate:g}", leave=False):
            start = time.perf_counter()
            hit = bf.has(probe)
            metrics.query_latencies.append((time.perf_counter() - start) * 1000)
            metrics.false_positives += hit
            metrics.probes += 1

        return metrics

def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--sizes", type=int, nargs="+", default=[100, 1000, 10000], help="Key counts")
    parser.add_argument("--rates", type=float, nargs="+", default=[0.01, 0.001, 0.0001], help="Target error rates")
    parser.add_argument("--probes", type=int, default=20000, help="Non-member probes per run")
    parser.add_argument("--output", type=Path, default=Path("benchmark_results"), help="Output directory")
    args = parser.parse_args()

    args.output.mkdir(parents=True, exist_ok=True)

    results: List[Metrics] = []
    for size in args.sizes:
        suite = BenchmarkSuite(size, args.probes)
        for rate in args.rates:
            results.append(suite.run(rate))

    plot_error_rates(results, args.output / "error_rates.html")

    # Save metrics
    with open(args.output / "metrics.json", "w") as f:
        json.dump([m.to_dict() for m in results], f, indent=2)

if __name__ == "__main__":
    main()
