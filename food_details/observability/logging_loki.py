# food_details/observability/logging_loki.py

import os
import time
import json
from typing import Any, Dict, Optional

import requests


# Only these payload keys become Loki stream labels; everything else
# (food_id, session_id, latency, errors) stays in the log line.
LABEL_KEYS = {
    "service": "service",
    "io": "io",
    "outcome": "outcome",
}


def latency_since(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 3)


class LokiLogger:
    """
    Pushes composition and backend events to Grafana Loki.

    Env vars:
      - GRAFANA_LOKI_URL        e.g. https://logs-prod-025.grafana.net/loki/api/v1/push
      - GRAFANA_LOKI_USERNAME   tenant / user ID
      - GRAFANA_LOKI_API_TOKEN  token with logs:write
      - FOOD_DETAILS_APP_LABEL  (optional) app label, default "food_details"

    Labels: app, level, event, service (food_service / order_service / host),
    io (in / out / none) and outcome.
    """

    def __init__(self) -> None:
        self.url = os.getenv("GRAFANA_LOKI_URL")
        self.username = os.getenv("GRAFANA_LOKI_USERNAME")
        self.token = os.getenv("GRAFANA_LOKI_API_TOKEN")
        self.app_label = os.getenv("FOOD_DETAILS_APP_LABEL", "food_details")

        self.enabled = all([self.url, self.username, self.token])
        if not self.enabled:
            print("[LokiLogger] Disabled - missing GRAFANA_LOKI_* env vars")
        else:
            print("[LokiLogger] Enabled, pushing to", self.url)

    def event(
        self,
        level: str,
        event_type: str,
        service: str,
        io: str = "none",
        food_id: Optional[int] = None,
        session_id: Optional[str] = None,
        start: Optional[float] = None,
        **fields: Any,
    ) -> None:
        """
        Log one composition event.

        `start` is a perf_counter() reading; when given, latency_ms is added.
        """
        payload: Dict[str, Any] = {
            "event_type": event_type,
            "service": service,
            "io": io,
            "food_id": food_id,
            "session_id": session_id,
        }
        if start is not None:
            payload["latency_ms"] = latency_since(start)
        payload.update(fields)
        self.log(level, {k: v for k, v in payload.items() if v is not None})

    def log(self, level: str, message, **fields) -> None:
        if not self.enabled:
            return

        if isinstance(message, dict):
            payload = {**fields, **message}
        else:
            payload = {**fields, "message": str(message)}

        labels = {"app": self.app_label, "level": level}
        if payload.get("event_type"):
            labels["event"] = str(payload["event_type"])
        for src, dst in LABEL_KEYS.items():
            if payload.get(src) not in (None, ""):
                labels[dst] = str(payload[src])

        line = json.dumps(payload, ensure_ascii=False, default=str)
        self._push(labels, line)

    def _push(self, labels: Dict[str, str], line: str) -> None:
        body = {"streams": [{"stream": labels, "values": [[str(time.time_ns()), line]]}]}
        try:
            resp = requests.post(
                self.url,
                auth=(self.username, self.token),
                json=body,
                timeout=4,
            )
            if resp.status_code not in (200, 204):
                print("[LokiLogger] Push failed:", resp.status_code, resp.text[:200])
        except requests.RequestException as e:
            print("[LokiLogger] Exception while pushing to Loki:", e)


loki = LokiLogger()
