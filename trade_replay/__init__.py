"""trade_replay - parallel CSV trade replay into QuestDB"""

__version__ = "1.0.0"
