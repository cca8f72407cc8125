from .status import NO_DATA, channel_status, latest_status

__all__ = ["NO_DATA", "channel_status", "latest_status"]
