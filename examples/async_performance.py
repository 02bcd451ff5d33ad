"""
Compare caller-side latency of the blocking and non-blocking transports.
"""

import argparse
import logging
import time
from typing import List

from dotenv import load_dotenv

from traceflow import TraceFlowConfig, TraceFlowSDK

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


def run(config: TraceFlowConfig, traces: int, steps: int) -> List[float]:
    durations = []
    sdk = TraceFlowSDK(config)
    try:
        for i in range(traces):
            start = time.perf_counter()
            trace = sdk.start_trace(title=f"perf trace {i}")
            for j in range(steps):
                trace.start_step(name=f"step {j}").finish({"j": j})
            trace.finish()
            durations.append(time.perf_counter() - start)
        flush_start = time.perf_counter()
        sdk.flush()
        print(f"  flush took {(time.perf_counter() - flush_start) * 1000:.1f} ms")
    finally:
        sdk.shutdown()
    return durations


def main():
    parser = argparse.ArgumentParser(description="Measure TraceFlow transport overhead")
    parser.add_argument("--traces", type=int, default=20, help="Number of traces to emit")
    parser.add_argument("--steps", type=int, default=5, help="Steps per trace")
    args = parser.parse_args()

    load_dotenv()
    for async_http in (False, True):
        label = "non-blocking" if async_http else "blocking"
        print(f"{label}:")
        config = TraceFlowConfig.from_env(source="perf-example", async_http=async_http)
        durations = run(config, args.traces, args.steps)
        average = sum(durations) / len(durations) * 1000
        print(f"  avg {average:.2f} ms per trace ({args.steps} steps), max {max(durations) * 1000:.2f} ms")


if __name__ == "__main__":
    main()
