from trade_replay.config.settings import Settings, settings

__all__ = ['Settings', 'settings']
