from .device_registry import DeviceRegistry, build_mapping

__all__ = ["DeviceRegistry", "build_mapping"]
