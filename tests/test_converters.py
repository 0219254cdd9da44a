import pytest

from models.base import AlertSeverity, AQICategory, HeatAlertLevel, WQICategory
from services.converters import (
    aqi_alert_severity,
    aqi_category,
    approximate_aqi,
    heat_alert_level,
    heat_alert_severity,
    heat_index,
    is_safe_for_drinking,
    water_quality_index,
    wqi_category,
)

HEAT_LEVEL_RANK = [HeatAlertLevel.GREEN, HeatAlertLevel.YELLOW, HeatAlertLevel.ORANGE, HeatAlertLevel.RED]


class TestHeatIndex:
    @pytest.mark.parametrize("temp", [-10.0, 0.0, 15.5, 26.0, 26.9])
    @pytest.mark.parametrize("humidity", [0.0, 30.0, 65.0, 100.0])
    def test_below_threshold_returns_temperature(self, temp, humidity):
        """Below 27°C the air temperature is returned as is"""
        assert heat_index(temp, humidity) == temp

    def test_regression_applied_at_threshold(self):
        assert heat_index(27.0, 80.0) != 27.0

    def test_hot_dry_delhi_value(self):
        assert heat_index(46.0, 30.0) == 56.6

    def test_rounded_to_one_decimal(self):
        value = heat_index(33.3, 55.0)
        assert value == round(value, 1)


class TestHeatAlertLevel:
    @pytest.mark.parametrize("temp,hi,expected", [
        (30.0, 30.0, HeatAlertLevel.GREEN),
        (36.9, 39.9, HeatAlertLevel.GREEN),
        (37.0, 30.0, HeatAlertLevel.YELLOW),
        (30.0, 40.0, HeatAlertLevel.YELLOW),
        (40.0, 30.0, HeatAlertLevel.ORANGE),
        (30.0, 45.0, HeatAlertLevel.ORANGE),
        (45.0, 30.0, HeatAlertLevel.RED),
        (30.0, 52.0, HeatAlertLevel.RED),
    ])
    def test_band_boundaries_belong_to_higher_band(self, temp, hi, expected):
        assert heat_alert_level(temp, hi) == expected

    def test_most_severe_band_wins(self):
        """Yellow temperature with a red heat index is red, never averaged"""
        assert heat_alert_level(37.5, 53.0) == HeatAlertLevel.RED

    @pytest.mark.parametrize("humidity", [10.0, 40.0, 70.0])
    def test_non_decreasing_with_temperature(self, humidity):
        levels = []
        temp = 20.0
        while temp <= 50.0:
            levels.append(heat_alert_level(temp, heat_index(temp, humidity)))
            temp += 0.5
        ranks = [HEAT_LEVEL_RANK.index(level) for level in levels]
        assert ranks == sorted(ranks)


class TestAQICategory:
    @pytest.mark.parametrize("value,expected", [
        (0, AQICategory.GOOD),
        (50, AQICategory.GOOD),
        (50.5, AQICategory.SATISFACTORY),
        (100, AQICategory.SATISFACTORY),
        (200, AQICategory.MODERATE),
        (300, AQICategory.POOR),
        (400, AQICategory.VERY_POOR),
        (401, AQICategory.SEVERE),
        (1000, AQICategory.SEVERE),
    ])
    def test_bands(self, value, expected):
        assert aqi_category(value) == expected

    def test_every_value_gets_one_label(self):
        for value in range(0, 1001):
            assert aqi_category(value) in set(AQICategory)


class TestWQICategory:
    @pytest.mark.parametrize("value,expected", [
        (0, WQICategory.EXCELLENT),
        (25, WQICategory.EXCELLENT),
        (26, WQICategory.GOOD),
        (50, WQICategory.GOOD),
        (75, WQICategory.FAIR),
        (100, WQICategory.POOR),
        (101, WQICategory.VERY_POOR),
    ])
    def test_bands(self, value, expected):
        assert wqi_category(value) == expected


class TestApproximateAQI:
    def test_pm25_dominates(self):
        result = approximate_aqi({"pm2_5": 60.0, "pm10": 90.0, "co": 500.0, "no2": 10.0})

        assert result.value == 120
        assert result.category == AQICategory.MODERATE
        assert result.pollutants["pm25"]["value"] == 60.0
        assert result.pollutants["co"] == {"value": 0.5, "unit": "mg/m³"}
        assert result.pollutants["so2"]["value"] is None

    def test_pm10_dominates(self):
        result = approximate_aqi({"pm2_5": 20.0, "pm10": 310.4})
        assert result.value == 310
        assert result.category == AQICategory.VERY_POOR

    def test_missing_pm_values(self):
        assert approximate_aqi({"pm2_5": 20.0}) is None
        assert approximate_aqi({}) is None


class TestWaterQualityIndex:
    CLEAN = {
        "ph": 7.2, "dissolved_oxygen": 7.0, "bod": 2.0, "turbidity": 3.0,
        "total_coliform": 20, "nitrate": 10.0, "fluoride": 0.8, "iron": 0.2,
    }

    def test_all_parameters_within_limits(self):
        assert water_quality_index(self.CLEAN) == 65

    def test_all_parameters_outside_limits(self):
        dirty = {
            "ph": 9.0, "dissolved_oxygen": 4.0, "bod": 5.0, "turbidity": 9.0,
            "total_coliform": 90, "nitrate": 50.0, "fluoride": 2.0, "iron": 0.5,
        }
        wqi = water_quality_index(dirty)
        assert wqi == 125
        assert wqi_category(wqi) == WQICategory.VERY_POOR

    def test_single_parameter_out_of_range(self):
        assert water_quality_index({**self.CLEAN, "ph": 6.0}) == 75

    def test_drinking_safety_threshold(self):
        assert is_safe_for_drinking(50)
        assert not is_safe_for_drinking(51)


class TestAlertSeverityMapping:
    def test_heat_levels(self):
        assert heat_alert_severity(HeatAlertLevel.RED) == AlertSeverity.EMERGENCY
        assert heat_alert_severity(HeatAlertLevel.ORANGE) == AlertSeverity.WARNING
        assert heat_alert_severity(HeatAlertLevel.YELLOW) is None
        assert heat_alert_severity(HeatAlertLevel.GREEN) is None

    def test_aqi_categories(self):
        assert aqi_alert_severity(AQICategory.SEVERE) == AlertSeverity.EMERGENCY
        assert aqi_alert_severity(AQICategory.VERY_POOR) == AlertSeverity.CRITICAL
        assert aqi_alert_severity(AQICategory.POOR) == AlertSeverity.WARNING
        assert aqi_alert_severity(AQICategory.MODERATE) is None
