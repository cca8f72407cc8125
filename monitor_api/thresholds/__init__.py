from .config_store import ThresholdConfigStore

__all__ = ["ThresholdConfigStore"]
