#!/usr/bin/env python3
"""Performance benchmarking script for File Scavenger.

Generates synthetic projects where every other module imports its neighbour,
then times a full scan at several batch sizes.
"""

import asyncio
import sys
import tempfile
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from src.analyzer.orchestrator import ScanOrchestrator
from src.analyzer.overrides import OverrideStore


def generate_project(root: Path, file_count: int, padding_lines: int = 40):
    """Write file_count modules; even-numbered ones import the next module."""
    filler = "\n".join(f"const line{i} = {i};" for i in range(padding_lines))
    for i in range(file_count):
        body = f'import {{ x }} from "./module_{i + 1:05d}";\n' if i % 2 == 0 else ""
        (root / f"module_{i:05d}.ts").write_text(body + filler, encoding="utf-8")


def benchmark_scan(root: Path, batch_size: int) -> dict:
    """Run one scan and time it."""
    orchestrator = ScanOrchestrator(OverrideStore(), batch_size=batch_size)

    start = time.time()
    result = asyncio.run(orchestrator.scan(root))
    elapsed = time.time() - start

    tracked = len(orchestrator.tracked)
    return {
        'batch_size': batch_size,
        'files': tracked,
        'unused': len(result.unused_files),
        'total_time': elapsed,
        'per_file': (elapsed / tracked) if tracked else 0,
    }


if __name__ == "__main__":
    sizes = [200, 1000]
    batch_sizes = [25, 100, 500]

    print("\n" + "=" * 80)
    print("SCAN PERFORMANCE SUMMARY")
    print("=" * 80)
    print(f"{'Files':<8} {'Batch':<8} {'Unused':<8} {'Total Time':<12} {'Per File':<12} {'Status':<10}")
    print("-" * 80)

    for size in sizes:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            generate_project(root, size)
            for batch_size in batch_sizes:
                r = benchmark_scan(root, batch_size)
                status = "PASS" if r['per_file'] < 0.05 else "SLOW"
                print(f"{r['files']:<8} {r['batch_size']:<8} {r['unused']:<8} "
                      f"{r['total_time']:<12.2f} {r['per_file']:<12.4f} {status:<10}")

    print("-" * 80)
    print("\nTHRESHOLD: a full scan must stay under 0.05s per tracked file\n")
