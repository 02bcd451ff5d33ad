"""
Walk through a trace lifecycle against a running TraceFlow collector.

Configure with TRACEFLOW_URL / TRACEFLOW_API_KEY (a .env file works too).
"""

import logging
import time

from dotenv import load_dotenv

from traceflow import LogLevel, TraceFlowConfig, TraceFlowSDK

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def process_order(sdk: TraceFlowSDK, order_id: str) -> None:
    trace = sdk.start_trace(
        trace_type="order_processing",
        title=f"Process order {order_id}",
        owner="checkout-team",
        tags=["orders", "example"],
        params={"order_id": order_id},
        trace_timeout_ms=60_000,
        step_timeout_ms=10_000,
    )

    validate = trace.start_step(name="validate", step_type="validation", input={"order_id": order_id})
    time.sleep(0.05)
    validate.finish({"valid": True})

    charge = trace.start_step(name="charge", step_type="payment")
    try:
        raise ConnectionError("payment gateway timeout")
    except ConnectionError as e:
        charge.fail(e)
        trace.log("payment failed, falling back to invoice", level=LogLevel.WARN)

    invoice = trace.start_step(name="invoice", step_type="payment")
    invoice.finish({"invoice_id": f"INV-{order_id}"})

    trace.finish({"status": "invoiced"}, metadata={"fallback": True})
    logger.info(f"Trace {trace.trace_id} finished")


def main():
    load_dotenv()
    config = TraceFlowConfig.from_env(source="basic-example")

    with TraceFlowSDK(config) as sdk:
        process_order(sdk, "1001")

        cancelled = sdk.start_trace(title="Abandoned cart")
        cancelled.cancel()


if __name__ == "__main__":
    main()
