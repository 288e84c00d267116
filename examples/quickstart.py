"""OrbWatch Quickstart: follow a backend and print what the globe would show."""

import asyncio
import logging
import os

from orbwatch import Feed, TrackingEngine, TrackerConfig

logging.basicConfig(level=logging.INFO)


async def main() -> None:
    token = os.environ.get("ORBWATCH_TOKEN")
    engine = TrackingEngine.from_config(lambda: token, TrackerConfig.from_env())

    engine.start()
    await asyncio.sleep(5)

    status = engine.status(Feed.CATALOG)
    if status.error:
        print(f"Catalog error: {status.error}")
    elif status.notice:
        print(status.notice)

    print(f"Tracking:  {engine.tracking_count} objects")
    for group, members in engine.group_listing().items():
        print(f"  {group.label:<20} {len(members):5d}")

    panel = engine.warning_panel()
    if panel.total:
        print(panel.header)
        for w in panel.entries:
            print(f"  {w.object_name:<24} {w.distance_km:8.2f} km  in {w.hours_from_now:.1f}h")

    # Inspect the closest warning and wait for its ground track
    if panel.entries:
        task = engine.select_warning(panel.entries[0].object_name)
        if task is not None:
            path = await task
            print(f"Path:      {len(path) if path else 0} points")
        engine.clear_selection()

    await engine.stop()


if __name__ == "__main__":
    asyncio.run(main())
