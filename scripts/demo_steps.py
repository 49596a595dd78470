from __future__ import annotations

import argparse
import asyncio
import json
import time

from fit_config.settings import BridgeSettings, init_runtime
from fit_common.telemetry import telemetry_recent
from fit_bridge import RequestCoordinator
from fit_bridge.adapters import CallbackSink, GoogleFitProvider, InMemoryCapabilityStore, InMemoryProvider
from fit_bridge.domain import Bucket, DataPoint

DAY = 24 * 60 * 60


def _pretty(x) -> str:
    if isinstance(x, str):
        try:
            return json.dumps(json.loads(x), indent=2, ensure_ascii=False)
        except json.JSONDecodeError:
            return x
    return json.dumps(x, indent=2, ensure_ascii=False)


def _sample_buckets(days: int) -> list[Bucket]:
    now = int(time.time())
    out = []
    for i in range(days, 0, -1):
        start = now - i * DAY
        out.append(
            Bucket(
                start=start,
                end=start + DAY,
                points=[DataPoint(start_nanos=start * 10**9, end_nanos=(start + 3600) * 10**9,
                                  readings={"steps": 1000 * i})],
            )
        )
    return out


def _emit(signal: str, *args) -> None:
    print(f"\nSIGNAL {signal}{args}")
    if signal == "total_steps_retrieved" and isinstance(args[0], str):
        print(_pretty(args[0]))


async def main() -> None:
    ap = argparse.ArgumentParser(description="Fetch recent step counts through the bridge.")
    ap.add_argument("--days", type=int, default=3, help="how far back to read")
    ap.add_argument("--token", default=None, help="Google Fit OAuth token; omit to use sample data")
    ap.add_argument("--deny", action="store_true", help="answer the permission prompt with 'deny'")
    args = ap.parse_args()

    init_runtime()
    settings = BridgeSettings.from_env()

    store = InMemoryCapabilityStore(prompt_answers={settings.capability: not args.deny})
    if args.token:
        provider = GoogleFitProvider(args.token)
    else:
        provider = InMemoryProvider(_sample_buckets(args.days))

    coordinator = RequestCoordinator(store, provider, CallbackSink(_emit), settings=settings)

    print(f"\ncheck_and_report() -> {coordinator.check_and_report()}")
    coordinator.request_permission()
    await coordinator.drain()
    print(f"check_and_report() -> {coordinator.check_and_report()}")

    coordinator.fetch_recent_data(args.days * DAY)
    await coordinator.drain()

    print("\nTELEMETRY (last 5):")
    print(_pretty(telemetry_recent(5)))


if __name__ == "__main__":
    asyncio.run(main())
