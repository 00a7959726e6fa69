"""
DuelSync - Two-player card duel engine with client snapshot sync

A deterministic, rules-driven engine for duels played between two
clients that each hold a full copy of the game. It provides:
- Deck loading and card validation
- Pure action resolution (combat, keywords, triggered effects)
- Legal action generation
- Snapshot reconciliation over a shared room store
"""

__version__ = "0.1.0"
