import math
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from app.modules.confluence.schemas import PnlPoint, TradeStatistics

# Reported when there are profits but no losing trades
PROFIT_FACTOR_CAP = 999.0


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _minutes_of_day(value: Any) -> Optional[int]:
    """'HH:MM' or 'HH:MM:SS' -> minutes since midnight"""
    if not isinstance(value, str) or ":" not in value:
        return None
    parts = value.strip().split(":")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except (ValueError, IndexError):
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def holding_minutes(entry_time: Any, exit_time: Any) -> Optional[int]:
    entry = _minutes_of_day(entry_time)
    exit_ = _minutes_of_day(exit_time)
    if entry is None or exit_ is None:
        return None
    duration = exit_ - entry
    if duration < 0:
        # exit on the next day
        duration += 24 * 60
    return duration


def chronological(trades: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Oldest first; undated trades go last"""
    return sorted(
        trades,
        key=lambda t: (not t.get("trade_date"), str(t.get("trade_date") or ""), str(t.get("entry_time") or "")),
    )


def running_pnl(trades: Sequence[Mapping[str, Any]]) -> List[float]:
    cumulative = []
    total = 0.0
    for trade in trades:
        total += _to_float(trade.get("pnl")) or 0.0
        cumulative.append(total)
    return cumulative


def max_drawdown(cumulative: Sequence[float]) -> Tuple[float, float]:
    """Largest peak-to-trough drop of a running P&L, as (amount, percent of the peak)"""
    # equity starts at zero
    peak = worst = worst_peak = 0.0
    for value in cumulative:
        if value > peak:
            peak = value
        if peak - value > worst:
            worst = peak - value
            worst_peak = peak
    percent = worst / worst_peak * 100 if worst_peak > 0 else 0.0
    return worst, percent


def compute_trade_statistics(trades: Sequence[Mapping[str, Any]]) -> TradeStatistics:
    if not trades:
        return TradeStatistics()

    pnls = [_to_float(t.get("pnl")) or 0.0 for t in trades]
    total = len(pnls)
    total_pnl = sum(pnls)
    winning = sum(1 for p in pnls if p > 0)
    losing = sum(1 for p in pnls if p < 0)
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = abs(sum(p for p in pnls if p < 0))

    if gross_loss == 0:
        profit_factor = PROFIT_FACTOR_CAP if gross_profit > 0 else 0.0
    else:
        profit_factor = gross_profit / gross_loss

    sharpe = 0.0
    if total > 1:
        mean = total_pnl / total
        variance = sum((p - mean) ** 2 for p in pnls) / total
        std_dev = math.sqrt(variance)
        sharpe = mean / std_dev if std_dev > 0 else 0.0

    sizes = []
    for t in trades:
        quantity = _to_float(t.get("quantity"))
        price = _to_float(t.get("entry_price"))
        if quantity is not None and price is not None:
            sizes.append(abs(quantity * price))

    held = [m for m in (holding_minutes(t.get("entry_time"), t.get("exit_time")) for t in trades) if m is not None]
    days = {str(t.get("trade_date"))[:10] for t in trades if t.get("trade_date")}

    ordered = chronological(trades)
    cumulative = running_pnl(ordered)
    drawdown, drawdown_percent = max_drawdown(cumulative)
    series = [
        PnlPoint(
            date=str(t["trade_date"])[:10] if t.get("trade_date") else None,
            pnl=_to_float(t.get("pnl")) or 0.0,
            cumulative=value,
        )
        for t, value in zip(ordered, cumulative)
    ]

    return TradeStatistics(
        total_trades=total,
        total_pnl=total_pnl,
        win_rate=winning / total * 100,
        winning_trades=winning,
        losing_trades=losing,
        avg_trade_size=sum(sizes) / len(sizes) if sizes else 0.0,
        profit_factor=profit_factor,
        sharpe_ratio=sharpe,
        avg_time_held=sum(held) / len(held) if held else 0.0,
        trading_days=len(days),
        expectancy=total_pnl / total,
        max_drawdown=drawdown,
        max_drawdown_percent=drawdown_percent,
        pnl_series=series,
    )
