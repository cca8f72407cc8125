"""Tests del store de umbrales por canal."""

import math
import threading
import time

import pytest

from monitor_api.domain import DEFAULT_THRESHOLDS, EquipmentChannel, ThresholdConfig
from monitor_api.errors import ValidationError
from monitor_api.thresholds import ThresholdConfigStore


class TestThresholdConfigStore:
    def test_get_returns_channel_specific_defaults(self, config_store):
        for channel in EquipmentChannel:
            config = config_store.get(channel)
            assert config.min_temp == DEFAULT_THRESHOLDS[channel]["min_temp"]
            assert config.max_temp == DEFAULT_THRESHOLDS[channel]["max_temp"]

        chiller = config_store.get(EquipmentChannel.CHILLER)
        freezer = config_store.get(EquipmentChannel.FREEZER)
        warmer = config_store.get(EquipmentChannel.FOOD_WARMER)
        assert freezer.max_temp < chiller.min_temp < chiller.max_temp < warmer.min_temp

    def test_partial_update_keeps_other_fields(self, config_store):
        updated = config_store.set(EquipmentChannel.CHILLER, {"max_temp": 6, "warning_delay": 5})

        assert updated.max_temp == 6.0
        assert updated.warning_delay == 5.0
        assert updated.min_temp == 0.0
        assert updated.repeat_interval == 30.0
        assert config_store.get(EquipmentChannel.CHILLER) == updated

    def test_update_is_persisted(self, config_store, session_factory):
        config_store.set(EquipmentChannel.FREEZER, {"notifications_enabled": False})

        fresh = ThresholdConfigStore(session_factory)
        assert fresh.get(EquipmentChannel.FREEZER).notifications_enabled is False

    def test_min_above_max_is_rejected_without_mutation(self, config_store):
        before = config_store.get(EquipmentChannel.FREEZER)

        with pytest.raises(ValidationError) as exc:
            config_store.set(EquipmentChannel.FREEZER, {"min_temp": -10, "max_temp": -20})

        assert "minTemp" in exc.value.reason
        assert config_store.get(EquipmentChannel.FREEZER) == before

    def test_merged_config_is_validated_not_just_partial(self, config_store):
        # min 5 es válido por sí solo pero no junto al max 5 actual.
        with pytest.raises(ValidationError):
            config_store.set(EquipmentChannel.CHILLER, {"min_temp": 5})
        assert config_store.get(EquipmentChannel.CHILLER).min_temp == 0.0

    @pytest.mark.parametrize(
        "partial",
        [
            {"warning_delay": -1},
            {"repeat_interval": 0.5},
            {"max_temp": math.inf},
            {"min_temp": "cold"},
            {"min_temp": True},
            {"notifications_enabled": "yes"},
            {"colour": "blue"},
        ],
    )
    def test_invalid_partials(self, config_store, partial):
        before = config_store.get(EquipmentChannel.CHILLER)
        with pytest.raises(ValidationError):
            config_store.set(EquipmentChannel.CHILLER, partial)
        assert config_store.get(EquipmentChannel.CHILLER) == before

    def test_none_values_are_ignored(self, config_store):
        updated = config_store.set(EquipmentChannel.CHILLER, {"min_temp": None, "max_temp": 7})
        assert updated.min_temp == 0.0
        assert updated.max_temp == 7.0

    def test_reset_restores_defaults(self, config_store):
        config_store.set(EquipmentChannel.FOOD_WARMER, {"min_temp": 60, "repeat_interval": 5})

        reset = config_store.reset(EquipmentChannel.FOOD_WARMER)

        defaults = ThresholdConfig.defaults(EquipmentChannel.FOOD_WARMER)
        assert reset.min_temp == defaults.min_temp
        assert reset.repeat_interval == defaults.repeat_interval
        assert config_store.get(EquipmentChannel.FOOD_WARMER) == reset

    def test_list_has_one_config_per_channel(self, config_store):
        configs = config_store.list()
        assert [c.channel for c in configs] == list(EquipmentChannel)

    def test_concurrent_partial_updates_keep_both_fields(self, config_store, monkeypatch):
        original_validate = ThresholdConfig.validate

        def slow_validate(self):
            original_validate(self)
            time.sleep(0.1)

        monkeypatch.setattr(ThresholdConfig, "validate", slow_validate)
        config_store.get(EquipmentChannel.CHILLER)

        threads = [
            threading.Thread(target=config_store.set, args=(EquipmentChannel.CHILLER, {"min_temp": -2})),
            threading.Thread(target=config_store.set, args=(EquipmentChannel.CHILLER, {"max_temp": 8})),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        final = config_store.get(EquipmentChannel.CHILLER)
        assert (final.min_temp, final.max_temp) == (-2.0, 8.0)
