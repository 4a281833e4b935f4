"""Benchmark: cross-session search latency — per-query p50/p99.

Search is a linear scan with no index, so latency grows with the number
of stored sessions.  This measures ``search_sessions`` over an
in-memory backend holding a fixed corpus.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chat_session_store.storage.memory import InMemoryBackend

_SESSIONS: int = 500
_MESSAGES_PER_SESSION: int = 20
_ITERATIONS: int = 50


def _populate(backend: InMemoryBackend) -> None:
    for i in range(_SESSIONS):
        session = backend.new_session(f"session {i}")
        for j in range(_MESSAGES_PER_SESSION):
            role = "user" if j % 2 == 0 else "assistant"
            session.add_message(role, f"message {j} of session {i} about topic-{(i * j) % 97}")
        backend.save_session(session)


def bench_search_latency() -> dict[str, object]:
    """Benchmark StorageBackend.search_sessions() per-query latency.

    Returns
    -------
    dict with keys: operation, iterations, sessions, total_seconds,
    avg_latency_ms, p50_latency_ms, p99_latency_ms.
    """
    backend = InMemoryBackend()
    _populate(backend)

    latencies_ms: list[float] = []
    for i in range(_ITERATIONS):
        t0 = time.perf_counter()
        backend.search_sessions(f"topic-{i % 97}")
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "search_latency",
        "iterations": _ITERATIONS,
        "sessions": _SESSIONS,
        "total_seconds": round(total, 4),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_search_latency] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_search_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "search_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
