"""Quick benchmark runner for the batch engine.

Runs update jobs against a synthetic in-memory repository across a grid of
batch sizes and concurrency levels, plus one adaptive run. Results are
written to JSONL for later aggregation.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

from taskcraft.batch import BatchOperations
from taskcraft.core.config import BatchConfig
from taskcraft.core.logging import configure_logging
from taskcraft.core.metrics import MetricsCollector, Timer


def parse_args():
    p = argparse.ArgumentParser(description="Benchmark batch operations against a synthetic repository.")
    p.add_argument("--items", type=int, default=500, help="Number of tasks to update per run.")
    p.add_argument("--cost-ms", type=float, default=2.0, help="Simulated per-item repository latency.")
    p.add_argument("--batch-sizes", default="10,50,100", help="Comma-separated batch sizes to try.")
    p.add_argument("--concurrency", default="1,5,10", help="Comma-separated max_concurrent values to try.")
    p.add_argument("--output", default="logs/batch_benchmark.jsonl", help="Path to write JSONL metrics.")
    p.add_argument("--log-level", default="WARNING", help="Log level for engine output.")
    return p.parse_args()


class SyntheticRepository:
    """Async repository whose calls cost a fixed latency."""

    def __init__(self, cost_ms: float):
        self.cost = cost_ms / 1000.0
        self.rows: Dict[Any, Dict[str, Any]] = {}

    async def create(self, item):
        await asyncio.sleep(self.cost)
        self.rows[item["id"]] = dict(item)
        return item["id"]

    async def update(self, id, item):
        await asyncio.sleep(self.cost)
        self.rows[id] = {**self.rows.get(id, {}), **item}
        return self.rows[id]

    async def delete(self, id):
        await asyncio.sleep(self.cost)
        return self.rows.pop(id, None) is not None


def _ints(raw: str) -> List[int]:
    return [int(v) for v in raw.split(",") if v.strip()]


async def main():
    args = parse_args()
    configure_logging(args.log_level)

    repo = SyntheticRepository(args.cost_ms)
    items = [{"id": i, "status": "done"} for i in range(args.items)]
    collector = MetricsCollector(path=Path(args.output))
    ops = BatchOperations(config=BatchConfig(retry_delay_ms=0), metrics=collector)

    for batch_size in _ints(args.batch_sizes):
        for concurrency in _ints(args.concurrency):
            with Timer() as t:
                summary = await ops.batch_update(
                    items, repository=repo, batch_size=batch_size, max_concurrent=concurrency
                )
            print(
                f"batch_size={batch_size:<4} concurrency={concurrency:<3} "
                f"{t.milliseconds:8.1f}ms  ok={summary.succeeded} failed={summary.failed}"
            )

    with Timer() as t:
        summary = await ops.execute_with_optimal_size(items, repository=repo)
    sizing = summary.metadata.get("sizing", {})
    print(
        f"adaptive: batch_size={sizing.get('batch_size')} "
        f"concurrency={sizing.get('max_concurrent')} {t.milliseconds:.1f}ms"
    )

    print("\nSummary")
    print(json.dumps(collector.summarize(), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
