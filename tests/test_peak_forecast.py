"""
Unit tests for the market clock, peak pattern analysis and peak predictor.
"""

from datetime import date, timedelta, timezone

import pytest


class TestLocalTime:
    """Tests for UTC to Alberta time conversion."""

    def test_winter_offset(self):
        from twelvecp.local_time import to_local, utc_offset_hours

        local = to_local('2024-01-15T01:00:00Z')

        assert (local.year, local.month, local.day, local.hour) == (2024, 1, 14, 18)
        assert utc_offset_hours(local) == -7

    def test_summer_offset(self):
        from twelvecp.local_time import is_dst, to_local, utc_offset_hours

        local = to_local('2024-07-15T00:00:00Z')

        assert local.hour == 18
        assert utc_offset_hours(local) == -6
        assert is_dst(local)

    def test_spring_forward(self):
        from twelvecp.local_time import to_local

        before = to_local('2024-03-10T08:59:00Z')
        after = to_local('2024-03-10T09:00:00Z')

        assert (before.hour, before.minute) == (1, 59)
        assert after.hour == 3

    def test_fall_back(self):
        from twelvecp.local_time import is_dst, to_local

        assert is_dst(to_local('2024-11-03T07:30:00Z'))
        assert not is_dst(to_local('2024-11-03T08:30:00Z'))

    @pytest.mark.parametrize('timestamp', [
        '2024-01-15T01:00:00Z',
        '2024-01-15T01:00:00+00:00',
        '2024-01-15 01:00:00',
        '2024-01-15T01:00:00',
    ])
    def test_parse_utc_formats(self, timestamp):
        from twelvecp.local_time import parse_utc

        parsed = parse_utc(timestamp)

        assert parsed.tzinfo == timezone.utc
        assert (parsed.day, parsed.hour) == (15, 1)

    def test_month_dates_clipped(self):
        from twelvecp.local_time import month_dates

        assert len(month_dates(2026, 2)) == 28
        assert month_dates(2027, 1, 2, 24)[0] == date(2027, 1, 2)
        assert month_dates(2027, 1, 2, 24)[-1] == date(2027, 1, 24)

    def test_local_instant_rolls_over(self):
        from twelvecp.local_time import local_instant

        moment = local_instant(date(2026, 12, 31), 24)

        assert moment.date() == date(2027, 1, 1)
        assert moment.hour == 0

    def test_labels(self):
        from twelvecp.local_time import format_display_date, hour_label, is_weekend, month_index

        assert format_display_date(date(2026, 12, 11)) == 'Friday, December 11, 2026'
        assert hour_label(0) == '12 AM'
        assert hour_label(12) == '12 PM'
        assert hour_label(18) == '6 PM'
        assert is_weekend(date(2026, 12, 12))
        assert not is_weekend(date(2026, 12, 11))
        assert month_index('2024-12-31') == 11


class TestPeakPatterns:
    """Tests for the historical peak analysis."""

    def test_frequency_tables(self, peak_analysis):
        assert peak_analysis.peak_count == 8
        assert peak_analysis.by_month[12] == 5
        assert peak_analysis.by_month[1] == 3
        assert sum(peak_analysis.by_hour.values()) == 8
        assert peak_analysis.by_day_of_week['Saturday'] == 0
        assert peak_analysis.by_day_of_week['Sunday'] == 0
        assert peak_analysis.by_day_of_week['Tuesday'] == 3
        assert sum(peak_analysis.by_day_of_month.values()) == 8

    def test_primary_peak_hour(self, peak_analysis):
        assert peak_analysis.primary_peak_hour == 18
        assert peak_analysis.by_hour[18] == 6

    def test_dominant_month(self, peak_analysis):
        assert peak_analysis.dominant_month == 12

    def test_all_time_peak(self, peak_analysis):
        assert peak_analysis.all_time_peak_mw == 12384.0

    def test_yoy_growth(self, peak_analysis):
        assert peak_analysis.avg_yoy_growth_percent == pytest.approx(10.0)

    def test_yoy_growth_baseline(self):
        from twelvecp.peak_patterns import YearlyPeak, YearlyTop12Data, yoy_growth_percent

        single = [YearlyTop12Data(year=2024, peaks=[YearlyPeak('2024-01-12T01:00:00Z', 12000.0)])]

        assert yoy_growth_percent(single) == 3.0
        assert yoy_growth_percent([], baseline=2.5) == 2.5

    def test_yoy_growth_orders_years(self):
        from twelvecp.peak_patterns import YearlyPeak, YearlyTop12Data, yoy_growth_percent

        yearly = [
            YearlyTop12Data(year=2024, peaks=[YearlyPeak('2024-01-12T01:00:00Z', 11000.0)]),
            YearlyTop12Data(year=2022, peaks=[YearlyPeak('2022-12-22T01:00:00Z', 10000.0)]),
            YearlyTop12Data(year=2023, peaks=[YearlyPeak('2023-12-19T01:00:00Z', 10000.0)]),
        ]

        # 0% then 10%
        assert yoy_growth_percent(yearly) == pytest.approx(5.0)

    def test_average_temperature_skips_missing(self, peak_analysis):
        assert peak_analysis.avg_peak_temperature_c == pytest.approx(-30.0)

    def test_month_stats(self, peak_analysis):
        december = peak_analysis.month_stats[12]
        january = peak_analysis.month_stats[1]

        assert list(peak_analysis.month_stats) == [1, 12]
        assert december.peak_count == 5
        assert december.max_peak_mw == 12193.0
        assert december.avg_peak_mw == pytest.approx(12106.0)
        assert january.peak_count == 3
        assert january.avg_peak_mw == pytest.approx(12232.0)

    def test_hour_stats_match_counts(self, peak_analysis):
        assert list(peak_analysis.hour_stats) == [17, 18, 19]
        for hour, stats in peak_analysis.hour_stats.items():
            assert stats.peak_count == peak_analysis.by_hour[hour]
        assert peak_analysis.hour_stats[18].max_peak_mw == 12384.0
        assert peak_analysis.hour_stats[19].avg_peak_mw == 11998.0

    def test_day_of_week_stats(self, peak_analysis):
        stats = peak_analysis.day_of_week_stats

        assert list(stats) == ['Tuesday', 'Wednesday', 'Thursday', 'Friday']
        assert stats['Tuesday'].peak_count == 3
        assert stats['Tuesday'].max_peak_mw == 12150.0
        assert stats['Tuesday'].avg_peak_mw == pytest.approx(12053.0)

    def test_yearly_trends(self, peak_analysis):
        first, second = peak_analysis.yearly_trends

        assert (first.year, first.peak_count) == (2023, 2)
        assert first.max_peak_mw == 11000.0
        assert first.avg_peak_mw == pytest.approx(10900.0)
        assert first.yoy_change_percent is None
        assert (second.year, second.max_peak_mw) == (2024, 12100.0)
        assert second.yoy_change_percent == pytest.approx(10.0)

    def test_yearly_trends_skip_empty_years(self):
        from twelvecp.peak_patterns import YearlyPeak, YearlyTop12Data, yearly_trends

        trends = yearly_trends([
            YearlyTop12Data(year=2024, peaks=[YearlyPeak('2024-01-12T01:00:00Z', 11000.0)]),
            YearlyTop12Data(year=2023, peaks=[]),
        ])

        assert [t.year for t in trends] == [2024]

    def test_empty_archive(self):
        from twelvecp.peak_patterns import analyze_peak_patterns

        analysis = analyze_peak_patterns([], [])

        assert analysis.month_stats == {}
        assert analysis.yearly_trends == []

        assert analysis.peak_count == 0
        assert analysis.primary_peak_hour == 17
        assert analysis.dominant_month is None
        assert analysis.all_time_peak_mw == 0.0
        assert analysis.avg_peak_temperature_c is None
        assert analysis.day_of_week_share('Monday') == 0.0


class TestConfidence:
    """Tests for candidate scoring."""

    def test_weekends_score_zero(self, peak_analysis):
        from twelvecp.peak_predictor import PredictionConfig, calculate_confidence
        config = PredictionConfig.for_winter(2026)

        assert calculate_confidence(date(2026, 12, 12), peak_analysis, config) == 0
        assert calculate_confidence(date(2026, 12, 13), peak_analysis, config) == 0

    def test_weekdays_within_band(self, peak_analysis):
        from twelvecp.local_time import is_weekend
        from twelvecp.peak_predictor import PredictionConfig, calculate_confidence
        config = PredictionConfig.for_winter(2026)

        day = date(2026, 12, 1)
        while day <= date(2027, 1, 31):
            for rank in range(12):
                score = calculate_confidence(day, peak_analysis, config, rank=rank)
                if is_weekend(day):
                    assert score == 0
                else:
                    assert 40 <= score <= 95
            day += timedelta(days=1)

    def test_rank_decay(self, peak_analysis):
        from twelvecp.peak_predictor import PredictionConfig, calculate_confidence
        config = PredictionConfig.for_winter(2026)
        candidate = date(2026, 12, 17)

        first = calculate_confidence(candidate, peak_analysis, config, rank=0)
        later = calculate_confidence(candidate, peak_analysis, config, rank=3)

        assert later <= first

    def test_peak_dense_days_score_higher(self, peak_analysis):
        from twelvecp.peak_predictor import PredictionConfig, raw_confidence
        config = PredictionConfig.for_winter(2026)

        # Both Thursdays; the 17th sits in the most peak-dense day range
        assert raw_confidence(date(2026, 12, 17), peak_analysis, config) > \
            raw_confidence(date(2026, 12, 3), peak_analysis, config)

    @pytest.mark.parametrize('confidence, level', [
        (95, 'critical'), (85, 'critical'), (84, 'high'), (70, 'high'),
        (69, 'moderate'), (55, 'moderate'), (54, 'low'), (40, 'low'),
    ])
    def test_risk_levels(self, confidence, level):
        from twelvecp.peak_predictor import risk_level_for
        assert risk_level_for(confidence).value == level

    def test_invalid_config(self):
        from twelvecp.peak_predictor import PredictionConfig
        with pytest.raises(ValueError):
            PredictionConfig.for_winter(2026, min_confidence=90, max_confidence=80)


class TestPeakPredictor:
    """Tests for the ranked event forecast."""

    @pytest.fixture
    def events(self, peak_analysis):
        from twelvecp.peak_predictor import PredictionConfig, predict_peak_events
        return predict_peak_events(
            peak_analysis, PredictionConfig.for_winter(2026), today=date(2026, 10, 19)
        )

    def test_event_count_per_window(self, events):
        assert len(events) == 10
        assert sum(1 for e in events if e.month_group == 'december') == 6
        assert sum(1 for e in events if e.month_group == 'january') == 4

    def test_no_weekend_events(self, events):
        assert all(e.event_date.weekday() < 5 for e in events)

    def test_january_window_range(self, events):
        for e in events:
            if e.month_group == 'january':
                assert e.event_date.year == 2027
                assert 2 <= e.event_date.day <= 24

    def test_ranked_by_confidence(self, events):
        assert [e.rank for e in events] == list(range(1, 11))
        keys = [(-e.confidence_score, e.event_date) for e in events]
        assert keys == sorted(keys)

    def test_demand_non_increasing_in_rank(self, events):
        medians = [e.expected_demand_mw.median for e in events]
        assert all(a >= b for a, b in zip(medians, medians[1:]))
        for e in events:
            assert e.expected_demand_mw.min <= e.expected_demand_mw.median <= e.expected_demand_mw.max

    def test_first_event_demand(self, events):
        # 10% growth on the 12,384 MW all-time peak
        assert events[0].expected_demand_mw.median == round(12384.0 * 1.10)

    def test_growth_floor(self, peak_analysis):
        from dataclasses import replace
        from twelvecp.peak_predictor import PredictionConfig, project_demand

        shrinking = replace(peak_analysis, avg_yoy_growth_percent=-4.0)
        demand = project_demand(shrinking, PredictionConfig.for_winter(2026), rank=1)

        assert demand.median == round(12384.0 * 1.01)

    def test_time_window(self, events):
        window = events[0].time_window
        assert window.start == '17:00'
        assert window.end == '20:00'
        assert window.timezone == 'MST'

    def test_countdown_fields(self, events):
        for e in events:
            assert not e.is_past
            assert e.days_until_event == (e.event_date - date(2026, 10, 19)).days

    def test_past_events(self, peak_analysis):
        from twelvecp.peak_predictor import PredictionConfig, predict_peak_events

        events = predict_peak_events(
            peak_analysis, PredictionConfig.for_winter(2026), today=date(2027, 3, 1)
        )

        assert all(e.is_past for e in events)
        assert all(e.days_until_event == 0 for e in events)

    def test_historical_reference(self, events):
        for e in events:
            assert 'all-time peak' in e.historical_reference

    def test_event_ids_unique(self, events):
        assert len({e.id for e in events}) == len(events)

    def test_overlapping_windows_keep_ids_unique(self, peak_analysis):
        from twelvecp.peak_predictor import ForecastWindow, PredictionConfig, predict_peak_events

        window = ForecastWindow(year=2026, month=12, picks=3, group='december')
        events = predict_peak_events(
            peak_analysis, PredictionConfig(windows=(window, window)), today=date(2026, 10, 19)
        )

        assert len(events) == 6
        assert len({e.event_date for e in events}) == 3
        assert len({e.id for e in events}) == 6
        assert len({e.to_calendar_fields()['uid'] for e in events}) == 6

    def test_calendar_fields(self, events):
        fields = events[0].to_calendar_fields()

        assert fields['uid'] == events[0].id
        assert fields['start_utc'].tzinfo == timezone.utc
        assert fields['start_utc'].hour == 0  # 17:00 MST
        assert (fields['end_utc'] - fields['start_utc']).total_seconds() == 3 * 3600
        assert fields['priority'] in (1, 3, 5, 9)
        assert fields['reminders_minutes'] == [1440, 60]

    def test_summary(self, events):
        from twelvecp.peak_predictor import get_prediction_summary

        summary = get_prediction_summary(events)

        assert summary.total_events == 10
        assert (summary.critical_count + summary.high_count
                + summary.moderate_count + summary.low_count) == 10
        assert summary.by_group == {'december': 6, 'january': 4}
        assert summary.expected_max_demand == max(e.expected_demand_mw.max for e in events)

    def test_empty_summary(self):
        from twelvecp.peak_predictor import get_prediction_summary

        summary = get_prediction_summary([])

        assert summary.total_events == 0
        assert summary.average_confidence == 0
