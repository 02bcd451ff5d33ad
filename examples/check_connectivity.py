"""
Check that a TraceFlow collector is reachable and accepts a test trace.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from traceflow import TraceFlowConfig, TraceFlowSDK

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Test TraceFlow connectivity and send a test trace")
    parser.add_argument("--endpoint", help="Collector URL (defaults to TRACEFLOW_URL)")
    parser.add_argument("--api-key", help="API key (defaults to TRACEFLOW_API_KEY)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    load_dotenv()

    overrides = {"async_http": False, "silent_errors": False, "max_retries": 0}
    if args.endpoint:
        overrides["endpoint"] = args.endpoint
    if args.api_key:
        overrides["api_key"] = args.api_key
    config = TraceFlowConfig.from_env(**overrides)

    print(f"  Endpoint:  {config.endpoint}")
    print(f"  API Key:   {config.api_key[:8] + '...' if config.api_key else '<not set>'}")
    print(f"  Source:    {config.source}")
    print()

    with TraceFlowSDK(config) as sdk:
        print("  Checking connectivity... ", end="")
        if not sdk.test_connection():
            print("FAILED")
            return 1
        print("OK")

        print("  Sending test trace... ", end="")
        try:
            trace = sdk.start_trace(trace_type="sdk_test", title="TraceFlow SDK Test", metadata={"command": "test_connectivity"})
            trace.finish(metadata={"test": "passed"})
        except Exception as e:
            print("FAILED")
            print(f"  Error: {e}")
            return 1
        print("OK")
        print(f"\n  Trace ID: {trace.trace_id}")

    print("\n  All checks passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
