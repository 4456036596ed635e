"""Redis-backed record store implementing every engine port.

Records live as JSON values in per-kind hashes keyed by record id. Notification rules
are one JSON document. Audit rows, opportunity snapshots, notifications and alerts are
appended to streams; consumers must tolerate duplicates.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from conflict_engine.alerting.models import (
    AlertRequest,
    NotificationRequest,
    NotificationRule,
    ThresholdRule,
)
from conflict_engine.alerting.notifications import coerce_rules, normalize_rules
from conflict_engine.config import settings
from conflict_engine.errors import StorageError
from conflict_engine.prediction.models import EscalationPrediction, PeaceOpportunity
from conflict_engine.records.models import (
    IncidentRecord,
    RawIncident,
    RiskIndicatorRecord,
    UserRecord,
)
from conflict_engine.records.normalizer import normalize_incident, normalize_incidents

logger = logging.getLogger("engine.store")

INCIDENTS = "incidents"
INDICATORS = "indicators"
USERS = "users"
THRESHOLD_RULES = "threshold_rules"
NOTIFICATION_RULES = "notification_rules"

AUDIT_STREAM = "escalation_audit"
SNAPSHOT_STREAM = "peace_snapshots"
NOTIFICATION_STREAM = "notifications"
ALERT_STREAM = "alerts"


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        raise StorageError(f"Redis {operation} failed: {exc}") from exc


def _decode(payload: str, kind: str) -> Any:
    try:
        return json.loads(payload)
    except json.JSONDecodeError:
        logger.warning("Skipping undecodable %s row", kind)
        return None


class RedisRecordStore:
    """Incident, indicator, user and rule storage plus append-only output streams."""

    def __init__(self, client: aioredis.Redis, prefix: str = "conflict") -> None:
        self._r = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str | None = None, prefix: str | None = None) -> RedisRecordStore:
        client = aioredis.from_url(
            url or settings.redis_url,
            decode_responses=True,
            max_connections=10,
        )
        return cls(client, prefix or settings.redis_prefix)

    def key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    def stream(self, name: str) -> str:
        return f"{self._prefix}:stream:{name}"

    async def ping(self) -> bool:
        try:
            return bool(await self._r.ping())
        except RedisError:
            logger.warning("Redis ping failed")
            return False

    async def close(self) -> None:
        await self._r.aclose()

    # -- raw hash access ------------------------------------------------

    async def _values(self, name: str) -> list[Any]:
        with _storage_errors(f"HVALS {name}"):
            payloads = await self._r.hvals(self.key(name))
        rows = [_decode(p, name) for p in payloads]
        return [row for row in rows if isinstance(row, dict)]

    async def _put(self, name: str, record_id: int | str, payload: dict) -> None:
        with _storage_errors(f"HSET {name}"):
            await self._r.hset(self.key(name), str(record_id), json.dumps(payload, default=str))

    async def _append(self, name: str, fields: dict[str, str]) -> str:
        with _storage_errors(f"XADD {name}"):
            return await self._r.xadd(self.stream(name), fields)

    async def put_incident(self, row: dict) -> None:
        await self._put(INCIDENTS, row["id"], row)

    async def put_indicator(self, indicator: RiskIndicatorRecord) -> None:
        await self._put(INDICATORS, indicator.id, indicator.model_dump(mode="json", by_alias=True))

    async def put_user(self, user: UserRecord) -> None:
        await self._put(USERS, user.id, user.model_dump(mode="json", by_alias=True))

    async def put_threshold_rule(self, rule: ThresholdRule) -> None:
        await self._put(THRESHOLD_RULES, rule.id, rule.model_dump(mode="json", by_alias=True))

    # -- IncidentSource -------------------------------------------------

    async def get_incident(self, incident_id: int) -> IncidentRecord | None:
        with _storage_errors(f"HGET {INCIDENTS}"):
            payload = await self._r.hget(self.key(INCIDENTS), str(incident_id))
        row = _decode(payload, INCIDENTS) if payload is not None else None
        if not isinstance(row, dict):
            return None
        return normalize_incident(row)

    async def list_incidents(self) -> list[IncidentRecord]:
        return normalize_incidents(await self._values(INCIDENTS))

    async def list_raw_incidents(self) -> list[RawIncident]:
        return [RawIncident.model_validate(row) for row in await self._values(INCIDENTS)]

    # -- RiskIndicatorSource --------------------------------------------

    async def list_indicators(self) -> list[RiskIndicatorRecord]:
        indicators = [RiskIndicatorRecord.model_validate(row) for row in await self._values(INDICATORS)]
        return sorted(indicators, key=lambda r: r.id)

    async def top_indicators(self, region: str | None, limit: int = 10) -> list[RiskIndicatorRecord]:
        """Strongest indicators for a region (every region when None), highest value first."""
        indicators = [
            r for r in await self.list_indicators() if region is None or r.region == region
        ]
        indicators.sort(key=lambda r: (-r.value, r.id))
        return indicators[:limit]

    # -- UserDirectory --------------------------------------------------

    async def list_users(self) -> list[UserRecord]:
        users = [UserRecord.model_validate(row) for row in await self._values(USERS)]
        return sorted(users, key=lambda u: u.id)

    # -- RuleStore ------------------------------------------------------

    async def load_rules(self) -> list[NotificationRule]:
        with _storage_errors(f"GET {NOTIFICATION_RULES}"):
            payload = await self._r.get(self.key(NOTIFICATION_RULES))
        if payload is None:
            return []
        return coerce_rules(_decode(payload, NOTIFICATION_RULES))

    async def save_rules(self, rules: list[NotificationRule]) -> list[NotificationRule]:
        normalized = normalize_rules(rules)
        document = json.dumps([r.model_dump(mode="json", by_alias=True) for r in normalized])
        with _storage_errors(f"SET {NOTIFICATION_RULES}"):
            await self._r.set(self.key(NOTIFICATION_RULES), document)
        logger.info("Notification rules saved: %d rules", len(normalized))
        return normalized

    # -- ThresholdRuleSource --------------------------------------------

    async def list_threshold_rules(self) -> list[ThresholdRule]:
        rules = [ThresholdRule.model_validate(row) for row in await self._values(THRESHOLD_RULES)]
        return sorted(rules, key=lambda r: r.id, reverse=True)

    # -- output streams -------------------------------------------------

    async def record_prediction(self, prediction: EscalationPrediction, model_source: str) -> None:
        msg_id = await self._append(AUDIT_STREAM, {
            "prediction_json": prediction.model_dump_json(by_alias=True),
            "model_source": model_source,
        })
        logger.debug("Escalation audit appended: incident=%d stream_msg=%s", prediction.incident_id, msg_id)

    async def save_opportunities(self, opportunities: list[PeaceOpportunity]) -> None:
        """Append one snapshot row per opportunity."""
        for opportunity in opportunities:
            await self._append(SNAPSHOT_STREAM, {
                "opportunity_id": opportunity.id,
                "region": opportunity.region,
                "opportunity_json": opportunity.model_dump_json(by_alias=True),
            })
        logger.debug("Peace snapshot appended: %d opportunities", len(opportunities))

    async def create_notification(self, request: NotificationRequest) -> None:
        await self._append(NOTIFICATION_STREAM, {"notification_json": request.model_dump_json(by_alias=True)})

    async def create_alert(self, request: AlertRequest) -> None:
        msg_id = await self._append(ALERT_STREAM, {"alert_json": request.model_dump_json(by_alias=True)})
        logger.info("Alert enqueued: title=%s stream_msg=%s", request.title, msg_id)
