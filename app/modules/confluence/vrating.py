"""
VRating: a 0-10 rating of trading performance.

Five category scores are combined with fixed weights:
profitability 30%, risk management 25%, consistency 20%, emotional
discipline 15% and journaling adherence 10%. Each category maps its metrics
onto score bands and interpolates inside the band.
"""

import math
from typing import Any, Dict, Mapping, Sequence

from app.modules.confluence.schemas import VRating, VRatingScores
from app.modules.confluence.statistics import chronological, holding_minutes, max_drawdown, running_pnl
from app.modules.emotions.analysis import parse_emotional_state

CATEGORY_WEIGHTS = {
    "profitability": 0.30,
    "risk_management": 0.25,
    "consistency": 0.20,
    "emotional_discipline": 0.15,
    "journaling_adherence": 0.10,
}

POSITIVE_EMOTIONS = {"PATIENCE", "PATIENT", "DISCIPLINE", "DISCIPLINED", "CONFIDENT", "CALM"}
NEGATIVE_EMOTIONS = {"FOMO", "REVENGE", "TILT", "GREEDY", "IMPULSIVE"}
NEUTRAL_EMOTIONS = {"NEUTRAL"}
# ordinary trading nerves, weighted lightly positive
NORMAL_EMOTIONS = {"OVERRISK", "ANXIOUS", "FEARFUL"}

LARGE_LOSS_THRESHOLD = -50.0


def _pnl(trade: Mapping[str, Any]) -> float:
    try:
        return float(trade.get("pnl") or 0)
    except (TypeError, ValueError):
        return 0.0


def _percentage(value: float, total: float) -> float:
    if total == 0:
        return 0.0
    return round(value / total * 100, 2)


def _lerp(low: float, high: float, fraction: float) -> float:
    return low + (high - low) * fraction


def _clamp_score(score: float) -> float:
    return min(10.0, max(0.0, score))


def _std_dev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


def _monthly_pnl(trades: Sequence[Mapping[str, Any]]) -> Dict[str, float]:
    months: Dict[str, float] = {}
    for trade in trades:
        if not trade.get("trade_date"):
            continue
        month = str(trade["trade_date"])[:7]
        months[month] = months.get(month, 0.0) + _pnl(trade)
    return months


def profitability_score(trades: Sequence[Mapping[str, Any]]) -> float:
    pnls = [_pnl(t) for t in trades]
    net_pl_percentage = sum(pnls) / len(pnls) * 100
    win_rate = _percentage(sum(1 for p in pnls if p > 0), len(pnls))
    months = list(_monthly_pnl(trades).values())
    positive_months = _percentage(sum(1 for m in months if m > 0), len(months))

    if net_pl_percentage > 50 and win_rate > 70:
        score = 10.0
    elif net_pl_percentage >= 30 and win_rate >= 60:
        score = _lerp(8.0, 9.9, min((net_pl_percentage - 30) / 20, (win_rate - 60) / 10))
    elif net_pl_percentage >= 10 and win_rate >= 50:
        score = min(6.0 + (net_pl_percentage - 10) * 0.1, 7.9)
    elif 0 <= net_pl_percentage <= 10 or 40 <= win_rate < 50:
        score = _lerp(4.0, 5.9, min(net_pl_percentage / 10, (win_rate - 40) / 10))
    elif -10 <= net_pl_percentage < 0 or 30 <= win_rate < 40:
        score = _lerp(2.0, 3.9, min((net_pl_percentage + 10) / 10, (win_rate - 30) / 10))
    else:
        score = _lerp(1.0, 1.9, max(0.0, min(1.0, net_pl_percentage / -10)))

    if positive_months > 80:
        score += 0.5
    return _clamp_score(score)


def risk_management_score(trades: Sequence[Mapping[str, Any]]) -> float:
    _, drawdown = max_drawdown(running_pnl(trades))
    large_losses = _percentage(sum(1 for t in trades if _pnl(t) < LARGE_LOSS_THRESHOLD), len(trades))

    quantities = []
    for trade in trades:
        try:
            quantity = float(trade.get("quantity") or 0)
        except (TypeError, ValueError):
            quantity = 0.0
        if quantity > 0:
            quantities.append(quantity)
    avg_quantity = sum(quantities) / len(quantities) if quantities else 0.0
    variability = _std_dev(quantities) / avg_quantity * 100 if avg_quantity > 0 else 0.0
    oversized = _percentage(sum(1 for q in quantities if q > avg_quantity * 2), len(quantities))

    durations = [m / 60 for m in (holding_minutes(t.get("entry_time"), t.get("exit_time")) for t in trades) if m]
    duration = sum(durations) / len(durations) if durations else 0.0

    if drawdown < 10 and large_losses < 10 and variability < 30 and duration > 12:
        score = _lerp(9.0, 10.0, min(
            (10 - drawdown) / 10, (10 - large_losses) / 10, (30 - variability) / 30, (duration - 12) / 48
        ))
    elif 10 <= drawdown <= 20 and 10 <= large_losses <= 20 and 30 <= variability <= 50 and 6 <= duration <= 12:
        score = _lerp(7.0, 8.9, min(
            (20 - drawdown) / 10, (20 - large_losses) / 10, (50 - variability) / 20, (duration - 6) / 6
        ))
    elif 20 <= drawdown <= 30 and 20 <= large_losses <= 30 and 50 <= variability <= 70 and 1 <= duration <= 6:
        score = _lerp(5.0, 6.9, min(
            (30 - drawdown) / 10, (30 - large_losses) / 10, (70 - variability) / 20, duration / 6
        ))
    elif 30 <= drawdown <= 40 and 30 <= large_losses <= 40 and 70 <= variability <= 80 and duration < 1:
        score = _lerp(3.0, 4.9, min(
            (40 - drawdown) / 10, (40 - large_losses) / 10, (80 - variability) / 10, duration
        ))
    else:
        score = _lerp(1.0, 2.9, max(0.0, min(
            1.0, max(0.0, (50 - drawdown) / 50), max(0.0, (60 - large_losses) / 60)
        )))

    if oversized > 10:
        score -= 1.0
    return _clamp_score(score)


def consistency_score(trades: Sequence[Mapping[str, Any]]) -> float:
    pnls = [_pnl(t) for t in trades]
    mean = sum(pnls) / len(pnls)
    spread = _std_dev(pnls) / abs(mean) * 100 if mean != 0 else 0.0

    streak = longest = 0
    for pnl in pnls:
        streak = streak + 1 if pnl < 0 else 0
        longest = max(longest, streak)

    months = list(_monthly_pnl(trades).values())
    # share of positive months, 0..1
    monthly_ratio = sum(1 for m in months if m > 0) / len(months) if months else 0.0

    if spread < 5 and longest <= 3 and monthly_ratio > 5:
        score = 10.0
    elif 5 <= spread <= 10 and 4 <= longest <= 5 and 3 <= monthly_ratio <= 5:
        score = _lerp(8.0, 9.9, min((10 - spread) / 5, 5 - longest, (monthly_ratio - 3) / 2))
    elif 10 <= spread <= 15 and 6 <= longest <= 7 and 2 <= monthly_ratio <= 3:
        score = _lerp(6.0, 7.9, min((15 - spread) / 5, 7 - longest, monthly_ratio - 2))
    elif 15 <= spread <= 20 and 8 <= longest <= 10 and 1 <= monthly_ratio <= 2:
        score = _lerp(4.0, 5.9, min((20 - spread) / 5, (10 - longest) / 2, monthly_ratio - 1))
    else:
        score = _lerp(2.0, 3.9, max(0.0, min(
            1.0, max(0.0, (25 - spread) / 25), max(0.0, (10 - longest) / 10), max(0.0, monthly_ratio)
        )))
    return _clamp_score(score)


def emotional_discipline_score(trades: Sequence[Mapping[str, Any]], total_pnl: float) -> float:
    positive = negative = logged = 0.0
    negative_losses = positive_wins = 0.0

    for trade in trades:
        tags = set(parse_emotional_state(trade.get("emotional_state")))
        if not tags:
            continue
        logged += 1
        pnl = _pnl(trade)

        weight = 0.0
        if tags & POSITIVE_EMOTIONS:
            weight += 1.0
        if tags & NEUTRAL_EMOTIONS:
            weight += 0.5
        if tags & NORMAL_EMOTIONS:
            weight += 0.25
        positive += weight
        if pnl > 0:
            positive_wins += weight

        if tags & NEGATIVE_EMOTIONS:
            negative += 1
            if pnl < 0:
                negative_losses += 1

    positive_pct = _percentage(positive, logged)
    negative_impact = _percentage(negative_losses, negative)
    win_correlation = _percentage(positive_wins, positive)
    completeness = _percentage(logged, len(trades))

    if positive_pct > 80 and negative_impact < 15:
        score = 10.0
    elif 65 <= positive_pct <= 80 and 15 <= negative_impact <= 25:
        score = _lerp(8.5, 9.9, min((positive_pct - 65) / 15, (25 - negative_impact) / 10))
    elif 50 <= positive_pct <= 65 and 25 <= negative_impact <= 40:
        score = _lerp(7.0, 8.4, min((positive_pct - 50) / 15, (40 - negative_impact) / 15))
    elif 35 <= positive_pct <= 50 and 40 <= negative_impact <= 55:
        score = _lerp(5.5, 6.9, min((positive_pct - 35) / 15, (55 - negative_impact) / 15))
    else:
        score = _lerp(4.0, 5.4, max(0.0, min(1.0, positive_pct / 8, max(0.0, (60 - negative_impact) / 60))))

    if win_correlation > 70:
        score += 1.0
    elif win_correlation > 60:
        score += 0.5
    if completeness > 95:
        score += 1.0
    if total_pnl > 0 and score < 8.0:
        score += 0.5
    return _clamp_score(score)


def journaling_adherence_score(trades: Sequence[Mapping[str, Any]]) -> float:
    total = len(trades)
    strategy_usage = _percentage(sum(1 for t in trades if t.get("strategy_id") or t.get("strategies")), total)
    notes_usage = _percentage(sum(1 for t in trades if isinstance(t.get("notes"), str) and t["notes"].strip()), total)
    emotion_usage = _percentage(sum(1 for t in trades if parse_emotional_state(t.get("emotional_state"))), total)
    completeness = (strategy_usage + notes_usage + emotion_usage) / 3

    if completeness > 95:
        score = 10.0
    elif completeness >= 80:
        score = _lerp(8.0, 9.9, (completeness - 80) / 15)
    elif completeness >= 60:
        score = _lerp(6.0, 7.9, (completeness - 60) / 20)
    elif completeness >= 40:
        score = _lerp(4.0, 5.9, (completeness - 40) / 20)
    else:
        score = _lerp(2.0, 3.9, max(0.0, min(1.0, completeness / 20)))

    if emotion_usage >= 100:
        score += 0.5
    return _clamp_score(score)


def calculate_vrating(trades: Sequence[Mapping[str, Any]]) -> VRating:
    if not trades:
        return VRating()

    ordered = chronological(trades)
    total_pnl = sum(_pnl(t) for t in ordered)
    scores = {
        "profitability": profitability_score(ordered),
        "risk_management": risk_management_score(ordered),
        "consistency": consistency_score(ordered),
        "emotional_discipline": emotional_discipline_score(ordered, total_pnl),
        "journaling_adherence": journaling_adherence_score(ordered),
    }
    overall = sum(scores[name] * weight for name, weight in CATEGORY_WEIGHTS.items())

    dates = [str(t["trade_date"])[:10] for t in ordered if t.get("trade_date")]
    return VRating(
        overall_rating=round(overall, 2),
        category_scores=VRatingScores(**{name: round(value, 2) for name, value in scores.items()}),
        trade_count=len(ordered),
        start_date=dates[0] if dates else None,
        end_date=dates[-1] if dates else None,
    )
