"""
Emotional-state parsing and aggregation.

Trades carry free-form emotion tags in ``emotional_state``. Depending on how
the row was written the column comes back as NULL, a Postgres array, or a
JSON-encoded string, so every consumer goes through ``parse_emotional_state``
once and works with a clean list of upper-case tags afterwards.

The dashboard and the confluence view both aggregate through
``aggregate_emotions``; ``select_aggregation_input`` decides which trade set
feeds it so the two views agree when no filters are applied.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from app.config.settings import settings
from app.modules.emotions.schemas import EmotionRadarPoint

logger = logging.getLogger(__name__)

LEANING_THRESHOLD = 15.0
MIN_FULL_MARK = 10.0
FULL_MARK_HEADROOM = 1.2


def normalize_tag(tag: Any, vocabulary: Optional[Iterable[str]] = None) -> Optional[str]:
    """Trim and upper-case a tag; None if it is empty or not a known emotion."""
    if not isinstance(tag, str):
        return None
    normalized = tag.strip().upper()
    if not normalized:
        return None
    allowed = set(vocabulary) if vocabulary is not None else set(settings.get_emotion_vocabulary())
    if normalized not in allowed:
        return None
    return normalized


def _raw_tags(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            # Postgres array literal, e.g. {CONFIDENT,PATIENT}
            if text.startswith("{") and text.endswith("}"):
                return [part.strip().strip('"') for part in text[1:-1].split(",")]
            return [text]
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, str):
            return [parsed]
    return []


def parse_emotional_state(raw: Any, vocabulary: Optional[Iterable[str]] = None) -> List[str]:
    """Parse the stored emotional_state (None | JSON string | list) into distinct normalized tags."""
    allowed = list(vocabulary) if vocabulary is not None else settings.get_emotion_vocabulary()
    tags: List[str] = []
    for item in _raw_tags(raw):
        tag = normalize_tag(item, allowed)
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _trade_tags(trade: Mapping[str, Any], vocabulary: Optional[Iterable[str]]) -> List[str]:
    return parse_emotional_state(trade.get("emotional_state"), vocabulary)


def aggregate_emotions(
    trades: Sequence[Mapping[str, Any]],
    vocabulary: Optional[Iterable[str]] = None,
) -> List[EmotionRadarPoint]:
    """Count each emotion across the trades and derive its buy/sell leaning."""
    allowed = list(vocabulary) if vocabulary is not None else settings.get_emotion_vocabulary()
    counts: Dict[str, Dict[str, int]] = {}

    for trade in trades:
        side = trade.get("side")
        side = side.strip() if isinstance(side, str) else None
        for tag in _trade_tags(trade, allowed):
            bucket = counts.setdefault(tag, {"buy": 0, "sell": 0, "total": 0})
            bucket["total"] += 1
            if side == "Buy":
                bucket["buy"] += 1
            elif side == "Sell":
                bucket["sell"] += 1

    if not counts:
        return []

    max_count = max(bucket["total"] for bucket in counts.values())
    full_mark = max(MIN_FULL_MARK, FULL_MARK_HEADROOM * max_count)

    points = []
    for tag, bucket in counts.items():
        total = bucket["total"]
        leaning_value = (bucket["buy"] - bucket["sell"]) / total * 100
        leaning_value = max(-100.0, min(100.0, leaning_value))
        if leaning_value > LEANING_THRESHOLD:
            leaning, side = "Buy Leaning", "Buy"
        elif leaning_value < -LEANING_THRESHOLD:
            leaning, side = "Sell Leaning", "Sell"
        else:
            leaning, side = "Balanced", "NULL"
        points.append(EmotionRadarPoint(
            subject=tag,
            value=total,
            full_mark=full_mark,
            leaning=leaning,
            leaning_value=round(leaning_value, 2),
            side=side,
            buy_count=bucket["buy"],
            sell_count=bucket["sell"],
            total_trades=total,
        ))

    points.sort(key=lambda p: (-p.value, p.subject))
    return points


def filter_trades_by_emotions(
    trades: Sequence[Mapping[str, Any]],
    states: Iterable[str],
    vocabulary: Optional[Iterable[str]] = None,
) -> List[Mapping[str, Any]]:
    """Keep trades carrying at least one of the requested emotions.

    Runs in Python after the fetch; array-overlap filtering in PostgREST
    did not match mixed-case and JSON-string rows.
    """
    allowed = list(vocabulary) if vocabulary is not None else settings.get_emotion_vocabulary()
    wanted = {tag for tag in (normalize_tag(s, allowed) for s in states) if tag}
    if not wanted:
        return []
    return [t for t in trades if wanted.intersection(_trade_tags(t, allowed))]


def select_aggregation_input(
    trades: Sequence[Mapping[str, Any]],
    filtered_trades: Sequence[Mapping[str, Any]],
    filters_active: bool,
) -> Sequence[Mapping[str, Any]]:
    """Pick the trade set the emotion radar is computed from.

    Without filters the confluence view must aggregate exactly what the
    dashboard aggregates, i.e. ``trades``.
    """
    if filters_active:
        return filtered_trades
    if len(filtered_trades) != len(trades):
        logger.warning(
            f"[EMOTIONS] Filtered set ({len(filtered_trades)}) diverged from full set "
            f"({len(trades)}) with no filters active; aggregating the full set"
        )
    return trades


def _point_value(points: Sequence[EmotionRadarPoint], subject: str) -> Optional[int]:
    for point in points:
        if point.subject == subject:
            return point.value
    return None


def discipline_level(points: Sequence[EmotionRadarPoint]) -> Optional[float]:
    value = _point_value(points, "DISCIPLINE")
    if value is None:
        return None
    return float(min(100, value * 10))


def tilt_control(points: Sequence[EmotionRadarPoint]) -> Optional[float]:
    value = _point_value(points, "TILT")
    if value is None:
        return None
    return float(max(0, 100 - value * 10))
