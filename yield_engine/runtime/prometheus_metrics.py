from __future__ import annotations

import json
import logging
import os
from typing import Mapping

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

from yield_engine.runtime.summary import PlanSummary, SessionSummary

LOGGER = logging.getLogger(__name__)

PUSHGATEWAY_URL_ENV = "PROMETHEUS_PUSHGATEWAY_URL"
GROUPING_KEY_ENV = "PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON"


class PrometheusMetricsClient:
    """Pushgateway client for one-shot CLI runs.

    Expected environment:
    - PROMETHEUS_PUSHGATEWAY_URL: URL to the Pushgateway. When unset, every
      method is a no-op.

    Optional:
    - PROMETHEUS_PUSHGATEWAY_GROUPING_KEY_JSON: JSON object of string pairs
      used as grouping key, e.g. {"account_id": "A-1"}.

    Delivery is best-effort; callers log and continue on failure.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        env = os.environ if environ is None else environ
        self._pushgateway_url = env.get(PUSHGATEWAY_URL_ENV) or None
        self._grouping_key = self._load_grouping_key(env.get(GROUPING_KEY_ENV))
        self._registry = CollectorRegistry()
        self._gauges: dict[str, Gauge] = {}

    def is_enabled(self) -> bool:
        return self._pushgateway_url is not None

    @property
    def grouping_key(self) -> dict[str, str]:
        return dict(self._grouping_key)

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @staticmethod
    def _load_grouping_key(raw: str | None) -> dict[str, str]:
        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Invalid %s; ignoring", GROUPING_KEY_ENV)
            return {}

        if not isinstance(data, dict):
            return {}

        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def set_gauge(self, *, name: str, value: float, labels: dict[str, str]) -> None:
        if not self.is_enabled():
            return

        gauge = self._gauges.get(name)
        if gauge is None:
            gauge = Gauge(
                name,
                documentation=name,
                labelnames=sorted(labels),
                registry=self._registry,
            )
            self._gauges[name] = gauge

        gauge.labels(**labels).set(value)

    def record_plan(self, summary: PlanSummary) -> None:
        labels = {"account_id": summary.account_id}
        self.set_gauge(name="yield_plan_months", value=summary.month_count, labels=labels)
        self.set_gauge(name="yield_plan_principal", value=float(summary.principal), labels=labels)
        self.set_gauge(name="yield_plan_projected_interest", value=float(summary.projected_interest), labels=labels)
        self.set_gauge(name="yield_plan_paid_total", value=float(summary.paid_total), labels=labels)
        self.set_gauge(name="yield_plan_paid_days", value=summary.paid_days, labels=labels)

    def record_session(self, summary: SessionSummary) -> None:
        labels = {"session_id": summary.session_id}
        self.set_gauge(name="yield_session_trade_count", value=summary.stats.trade_count, labels=labels)
        self.set_gauge(name="yield_session_win_rate", value=summary.stats.win_rate, labels=labels)
        self.set_gauge(name="yield_session_total_gain", value=float(summary.stats.total_profit), labels=labels)

    def push_all(self, *, job: str) -> None:
        if not self.is_enabled():
            return

        push_to_gateway(
            gateway=self._pushgateway_url,
            job=job,
            registry=self._registry,
            grouping_key=self._grouping_key,
        )

        LOGGER.info(
            "Prometheus metrics pushed",
            extra={"job": job, "grouping_key": self._grouping_key},
        )
