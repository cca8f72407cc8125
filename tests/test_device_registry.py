"""Tests del registro de dispositivos."""

import pytest

from monitor_api.domain import EquipmentChannel
from monitor_api.errors import DeviceNotFoundError, ValidationError
from monitor_api.registry import build_mapping


class TestBuildMapping:
    def test_normalizes_fields(self):
        mapping = build_mapping("a8:40:41-1c", "lht65", "FOOD_WARMER", alias="  Pass warmer ")
        assert mapping.sensor_id == "A840411C"
        assert mapping.hardware_model == "LHT65N"
        assert mapping.channel == EquipmentChannel.FOOD_WARMER
        assert mapping.alias == "Pass warmer"
        assert mapping.enabled is True

    @pytest.mark.parametrize(
        "kwargs,reason",
        [
            ({"sensor_id": " ", "hardware_model": "LHT65N", "channel": "chiller"}, "sensorId"),
            ({"sensor_id": "A1", "hardware_model": "XYZ-9000", "channel": "chiller"}, "hardwareModel"),
            ({"sensor_id": "A1", "hardware_model": "LHT65N", "channel": "walk-in"}, "channel"),
            ({"sensor_id": "A1", "hardware_model": "LHT65N", "channel": "chiller", "enabled": "yes"}, "enabled"),
        ],
    )
    def test_rejects_invalid_fields(self, kwargs, reason):
        with pytest.raises(ValidationError) as exc:
            build_mapping(**kwargs)
        assert reason in exc.value.reason


class TestDeviceRegistry:
    def test_register_twice_keeps_one_mapping_with_latest_fields(self, registry):
        registry.register(build_mapping("A1", "LHT65N", "chiller", alias="old"))
        registry.register(build_mapping("a1", "EM300-TH", "freezer", alias="new"))

        mappings = registry.list()
        assert len(mappings) == 1
        assert mappings[0].sensor_id == "A1"
        assert mappings[0].hardware_model == "EM300-TH"
        assert mappings[0].channel == EquipmentChannel.FREEZER
        assert mappings[0].alias == "new"

    def test_register_preserves_created_at(self, registry):
        first = registry.register(build_mapping("A1", "LHT65N", "chiller"))
        second = registry.register(build_mapping("A1", "LHT65N", "freezer"))
        assert second.created_at == first.created_at
        assert second.updated_at >= first.updated_at

    def test_resolve_matches_any_id_spelling(self, registry):
        registry.register(build_mapping("A840411C", "LHT65N", "chiller"))
        mapping = registry.resolve("a8-40-41-1c")
        assert mapping is not None
        assert mapping.channel == EquipmentChannel.CHILLER

    def test_resolve_unknown_returns_none(self, registry):
        assert registry.resolve("NOPE") is None
        assert registry.resolve(None) is None

    def test_disabled_mapping_does_not_resolve(self, registry):
        registry.register(build_mapping("A1", "LHT65N", "chiller", enabled=False))
        assert registry.resolve("A1") is None

    def test_write_invalidates_cached_resolution(self, registry):
        registry.register(build_mapping("A1", "LHT65N", "chiller"))
        assert registry.resolve("A1").channel == EquipmentChannel.CHILLER

        registry.update("A1", {"channel": "freezer"})
        assert registry.resolve("A1").channel == EquipmentChannel.FREEZER

        registry.update("A1", {"enabled": False})
        assert registry.resolve("A1") is None

    def test_negative_lookup_is_cached_until_register(self, registry):
        assert registry.resolve("A1") is None
        assert registry.cache_stats()["size"] == 1
        registry.register(build_mapping("A1", "LHT65N", "chiller"))
        assert registry.resolve("A1") is not None

    def test_update_validates_merged_mapping(self, registry):
        registry.register(build_mapping("A1", "LHT65N", "chiller"))

        with pytest.raises(ValidationError):
            registry.update("A1", {"hardware_model": "unknown-model"})
        with pytest.raises(ValidationError):
            registry.update("A1", {"sensor_id": "B2"})

        assert registry.get("A1").hardware_model == "LHT65N"

    def test_get_and_remove_unknown_raise_not_found(self, registry):
        with pytest.raises(DeviceNotFoundError):
            registry.get("ghost")
        with pytest.raises(DeviceNotFoundError):
            registry.remove("ghost")

    def test_remove(self, registry):
        registry.register(build_mapping("A1", "LHT65N", "chiller"))
        assert registry.resolve("A1") is not None

        registry.remove("A1")

        assert registry.list() == []
        assert registry.resolve("A1") is None

    def test_write_during_resolve_is_not_cached(self, registry, monkeypatch):
        registry.register(build_mapping("A1", "LHT65N", "chiller"))
        original_fetch = registry._fetch

        def fetch_then_disable(key):
            mapping = original_fetch(key)
            monkeypatch.setattr(registry, "_fetch", original_fetch)
            registry.register(build_mapping("A1", "LHT65N", "chiller", enabled=False))
            return mapping

        monkeypatch.setattr(registry, "_fetch", fetch_then_disable)
        registry.resolve("A1")

        assert registry.cache_stats()["size"] == 0
        assert registry.resolve("A1") is None

    def test_concurrent_first_registration_becomes_update(self, registry, monkeypatch):
        first = registry.register(build_mapping("A1", "LHT65N", "chiller", alias="old"))
        original_load = registry._load
        calls = []

        def load_missing_once(db, key):
            calls.append(key)
            return None if len(calls) == 1 else original_load(db, key)

        monkeypatch.setattr(registry, "_load", load_missing_once)
        stored = registry.register(build_mapping("A1", "LHT65N", "freezer", alias="new"))

        assert len(calls) == 2
        assert stored.created_at == first.created_at
        mappings = registry.list()
        assert len(mappings) == 1
        assert (mappings[0].channel, mappings[0].alias) == (EquipmentChannel.FREEZER, "new")
