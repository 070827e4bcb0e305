"""ascentwatch quickstart: load the public catalog and screen a Cape Canaveral launch."""

import logging
from datetime import datetime, timezone

from ascentwatch import Engine

logging.basicConfig(level=logging.INFO)

engine = Engine()

ready = engine.handle({"type": "REFRESH_CATALOG"})
if ready["type"] == "ERROR":
    raise SystemExit(ready["message"])
print(f"Catalog: {ready['count']} objects ({ready['rejected']} element sets dropped)")

now = datetime.now(timezone.utc)
positions = engine.handle({"type": "PROPAGATE", "instant": now})
print(f"Sidereal angle: {positions['siderealAngle']:.4f} rad")

result = engine.handle({
    "type": "EVALUATE_RISK",
    "launchLatitudeDeg": 28.5,
    "launchLongitudeDeg": -80.6,
    "launchEpochMs": now.timestamp() * 1000,
})

print(f"Trajectory: {len(result['trajectory'])} points")
if not result["riskEvents"]:
    print("Clear: no cataloged object within the risk threshold during ascent.")
for event in sorted(result["riskEvents"], key=lambda e: e["distanceKm"])[:10]:
    print(f"T+{event['timeOffsetSec']:>4}s | {event['distanceKm']:7.2f} km | "
          f"{event['objectName']} ({event['objectId']})")
