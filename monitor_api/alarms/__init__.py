from .tracker import AlarmStateTracker, format_alert_message

__all__ = ["AlarmStateTracker", "format_alert_message"]
