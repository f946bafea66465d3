"""Tests for the pricing engine and pricing configuration."""

from datetime import date

import pytest
from watchdog.events import FileModifiedEvent

from swiftship.config import ServiceType, ShipmentType
from swiftship.core import ValidationException
from swiftship.quoting.domain import PackageDetails, PricingConfig, PricingEngine, RouteInfo
from swiftship.quoting.infrastructure import ConfigFileHandler, PricingConfigManager


class TestPricingEngine:
    """Price formula, rounding and delivery estimates."""

    @pytest.fixture
    def engine(self):
        return PricingEngine()

    def test_round_up_absorbs_float_noise(self):
        assert PricingEngine.round_up(2000.0000000002, 1000) == 2000
        assert PricingEngine.round_up(2001, 1000) == 3000
        assert PricingEngine.round_up(1655, 100) == 1700

    def test_long_distance_price(self, engine):
        # 1500 + 60*8 + 20*15 + 4490.2*2.5 = 13505.5
        price = engine.calculate_price(ServiceType.EXPRESS, 4490.2, 60, 20)
        assert price == 14000

    def test_short_distance_skips_per_km(self, engine):
        # 1500 + 10*8 + 5*15 = 1655
        assert engine.calculate_price(ServiceType.EXPRESS, 30, 10, 5) == 2000

    def test_short_distance_rounding_is_configurable(self):
        engine = PricingEngine(PricingConfig(short_distance_rounding=100))
        assert engine.calculate_price(ServiceType.EXPRESS, 30, 10, 5) == 1700

    def test_pallets_are_priced(self, engine):
        without = engine.calculate_price(ServiceType.STANDARD, 1000, 10, 5)
        with_pallets = engine.calculate_price(ServiceType.STANDARD, 1000, 10, 5, pallet_count=100)
        assert with_pallets > without

    def test_rush_factor_per_service(self, engine):
        args = (1000, 10, 5)
        assert engine.calculate_price(ServiceType.EXPRESS, *args, is_rush=True) == 7000
        assert engine.calculate_price(ServiceType.EXPRESS, *args) == 5000
        assert engine.calculate_price(ServiceType.STANDARD, *args, is_rush=True) == 3000
        assert engine.calculate_price(ServiceType.STANDARD, *args) == 3000
        assert engine.calculate_price(ServiceType.ECO, *args, is_rush=True) == 2000
        assert engine.calculate_price(ServiceType.ECO, *args) == 3000

    def test_prices_are_whole_rounding_units(self, engine):
        for service in ServiceType:
            for distance in (10, 75.3, 999.9, 4490.2):
                price = engine.calculate_price(service, distance, 33.3, 7.25, pallet_count=3)
                assert price > 0
                assert price % 1000 == 0

    def test_price_never_decreases_with_quantities(self, engine):
        for service in ServiceType:
            previous = 0
            for step in range(0, 40):
                price = engine.calculate_price(service, step * 150, step * 5, step * 2)
                assert price >= previous
                previous = price

    def test_express_never_cheaper_than_eco(self, engine):
        for distance in (20, 200, 2000):
            for rush in (False, True):
                express = engine.calculate_price(ServiceType.EXPRESS, distance, 10, 5, is_rush=rush)
                eco = engine.calculate_price(ServiceType.ECO, distance, 10, 5, is_rush=rush)
                assert express >= eco

    @pytest.mark.parametrize("field", ["distance_km", "volume_m3", "weight_tons", "pallet_count"])
    def test_negative_quantities_rejected(self, engine, field):
        values = {"distance_km": 100, "volume_m3": 10, "weight_tons": 5, "pallet_count": 0}
        values[field] = -1
        with pytest.raises(ValidationException):
            engine.calculate_price(ServiceType.STANDARD, **values)

    def test_is_rush_below_threshold(self, engine):
        assert engine.is_rush(RouteInfo.from_measurements(1200, 23.9 * 60, "provider"))
        assert not engine.is_rush(RouteInfo.from_measurements(1400, 24 * 60, "provider"))

    @pytest.mark.parametrize("service,distance,text", [
        (ServiceType.EXPRESS, 0, "Same day delivery"),
        (ServiceType.EXPRESS, 100, "Same day delivery"),
        (ServiceType.EXPRESS, 400, "Next business day"),
        (ServiceType.STANDARD, 100, "2 business days"),
        (ServiceType.ECO, 4490.2, "14 business days"),
    ])
    def test_delivery_estimate_text(self, engine, service, distance, text):
        assert engine.estimate_delivery(service, distance).text == text

    def test_add_business_days_skips_weekend(self):
        friday = date(2025, 3, 7)
        assert PricingEngine.add_business_days(friday, 2) == date(2025, 3, 11)
        assert PricingEngine.add_business_days(friday, 1) == date(2025, 3, 10)

    def test_service_options_order_and_dates(self, engine):
        package = PackageDetails(
            type=ShipmentType.FULL_TRUCKLOAD, weight="20", volume="60", hazardous=False
        )
        route = RouteInfo.from_measurements(4490.2, 2460, "provider")
        options = engine.calculate_service_options(package, route, date(2025, 3, 3))

        assert [option.id for option in options] == [
            ServiceType.EXPRESS, ServiceType.STANDARD, ServiceType.ECO
        ]
        assert [option.price for option in options] == [14000, 10000, 7000]
        assert options[0].estimated_delivery == date(2025, 3, 5)
        assert options[2].estimated_delivery == date(2025, 3, 11)

    def test_service_options_without_pickup_date(self, engine):
        package = PackageDetails(
            type=ShipmentType.BULK_FREIGHT, weight="1", volume="1", hazardous=False
        )
        route = RouteInfo.from_measurements(80, 80, "provider")
        options = engine.calculate_service_options(package, route)
        assert all(option.estimated_delivery is None for option in options)


class TestPricingConfig:
    """Defaults, partial overrides and file loading."""

    def test_partial_override_keeps_defaults(self):
        config = PricingConfig(services={"eco_freight": {"base_price": 500}})
        eco = config.rates_for(ServiceType.ECO)
        assert eco.base_price == 500
        assert eco.name == "Eco Freight"
        assert config.rates_for(ServiceType.EXPRESS).base_price == 1500

    def test_unknown_service_rejected(self):
        with pytest.raises(ValueError):
            PricingConfig(services={"teleport": {"base_price": 1}})

    def test_missing_file_uses_defaults(self, tmp_path):
        manager = PricingConfigManager()
        config = manager.load(tmp_path / "missing.yaml")
        assert config.rates_for(ServiceType.STANDARD).per_km == 1.8
        assert manager.get_config() is config

    def test_load_and_reload_from_yaml(self, tmp_path):
        path = tmp_path / "pricing.yaml"
        path.write_text("short_distance_rounding: 100\nservices:\n  express_freight:\n    base_price: 2000\n")

        manager = PricingConfigManager()
        manager.load(path)
        assert manager.get_config().short_distance_rounding == 100
        assert manager.get_config().rates_for(ServiceType.EXPRESS).base_price == 2000

        path.write_text("services:\n  express_freight:\n    base_price: 2500\n")
        assert manager.reload() is True
        assert manager.get_config().rates_for(ServiceType.EXPRESS).base_price == 2500

    def test_bad_reload_keeps_previous_config(self, tmp_path):
        path = tmp_path / "pricing.yaml"
        path.write_text("long_distance_rounding: 500\n")
        manager = PricingConfigManager()
        manager.load(path)

        path.write_text("services: [unclosed\n")
        assert manager.reload() is False
        assert manager.get_config().long_distance_rounding == 500

    def test_get_config_before_load_raises(self):
        with pytest.raises(RuntimeError):
            PricingConfigManager().get_config()

    def test_file_change_event_triggers_reload(self, tmp_path):
        path = tmp_path / "pricing.yaml"
        path.write_text("long_distance_rounding: 500\n")
        manager = PricingConfigManager()
        manager.load(path)
        handler = ConfigFileHandler(manager, path)

        path.write_text("long_distance_rounding: 2000\n")
        handler.on_modified(FileModifiedEvent(str(tmp_path / "other.yaml")))
        assert manager.get_config().long_distance_rounding == 500

        handler.on_modified(FileModifiedEvent(str(path)))
        assert manager.get_config().long_distance_rounding == 2000

    def test_watching_absent_file_is_skipped(self, tmp_path):
        manager = PricingConfigManager()
        manager.load(tmp_path / "missing.yaml")

        manager.start_watching()
        assert manager._observer is None
        manager.stop_watching()

    def test_watch_requires_load(self):
        with pytest.raises(RuntimeError):
            PricingConfigManager().start_watching()
