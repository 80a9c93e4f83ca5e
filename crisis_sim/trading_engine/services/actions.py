from __future__ import annotations

from enum import Enum


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeType(str, Enum):
    PANIC_SELL = "panic_sell"
    FOMO_BUY = "fomo_buy"
    CRISIS_BUY = "crisis_buy"
    DELAYED_REACTION = "delayed_reaction"
    NORMAL = "normal"
