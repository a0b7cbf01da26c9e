"""
Unit tests for data loading and visualization.
"""

import json

import pandas as pd
import pytest


class TestDataLoader:
    """Tests for the hourly and peak-archive loaders."""

    @pytest.fixture
    def csv_path(self, tmp_path):
        df = pd.DataFrame({
            'Date': ['2024-01-01'] * 3 + ['2024-01-02'],
            'HE': [2, 1, 3, 1],
            'Pool_Price': [45.5, 30.0, None, 120.0],
            'AIL_MW': [9100, 9000, 9200, 9800],
        })
        path = tmp_path / 'hourly.csv'
        df.to_csv(path, index=False)
        return path

    def test_load_hourly_data(self, csv_path):
        from twelvecp.data_loader import load_hourly_data

        records = load_hourly_data(str(csv_path))

        # Row with a missing price is dropped; remaining rows are sorted
        assert len(records) == 3
        assert [(r.date, r.hour_ending) for r in records] == [
            ('2024-01-01', 1), ('2024-01-01', 2), ('2024-01-02', 1)
        ]
        assert records[0].pool_price == 30.0
        assert records[2].ail_mw == 9800.0

    def test_column_aliases(self):
        from twelvecp.data_loader import hourly_frame_to_records

        df = pd.DataFrame({
            'begin_date': ['2024-02-01'], 'hour_ending': [5], 'price': [60.0], 'ail': [9500.0]
        })

        records = hourly_frame_to_records(df)

        assert records[0].hour_ending == 5
        assert records[0].pool_price == 60.0

    def test_missing_column(self):
        from twelvecp.data_loader import hourly_frame_to_records

        df = pd.DataFrame({'date': ['2024-01-01'], 'he': [1], 'pool_price': [50.0]})

        with pytest.raises(ValueError, match="ail_mw"):
            hourly_frame_to_records(df)

    def test_missing_file(self, tmp_path):
        from twelvecp.data_loader import load_hourly_data
        with pytest.raises(FileNotFoundError):
            load_hourly_data(str(tmp_path / 'nope.csv'))

    def test_validate_clean_data(self, hourly_year):
        from twelvecp.data_loader import validate_hourly_data

        report = validate_hourly_data(hourly_year)

        assert report['valid']
        assert report['row_count'] == 366 * 24
        assert report['date_range'] == ('2024-01-01', '2024-12-31')

    def test_validate_flags_problems(self):
        from twelvecp.data_loader import validate_hourly_data
        from twelvecp.records import HourlyRecord

        records = [
            HourlyRecord('2024-01-01', 1, 50.0, 9000.0),
            HourlyRecord('2024-01-01', 1, 55.0, 9000.0),
            HourlyRecord('2024-01-01', 25, 50.0, -1.0),
        ]

        report = validate_hourly_data(records)

        assert not report['valid']
        assert len(report['issues']) == 3

    def test_validate_empty(self):
        from twelvecp.data_loader import validate_hourly_data
        report = validate_hourly_data([])
        assert report['date_range'] == (None, None)

    def test_price_statistics(self, hourly_year):
        from twelvecp.data_loader import get_price_statistics

        stats = get_price_statistics(hourly_year)

        assert stats['count'] == len(hourly_year)
        assert stats['min'] <= stats['median'] <= stats['max']
        assert stats['peak_ail_mw'] == max(r.ail_mw for r in hourly_year)

    def test_price_statistics_empty(self):
        from twelvecp.data_loader import get_price_statistics
        assert get_price_statistics([]) == {'count': 0}

    def test_load_peak_history(self, tmp_path, peak_archive):
        from twelvecp.data_loader import load_peak_history

        path = tmp_path / 'peaks.json'
        path.write_text(json.dumps(peak_archive))

        all_time, yearly = load_peak_history(str(path))

        assert len(all_time) == 8
        assert all_time[0].rank == 1
        assert [y.year for y in yearly] == [2023, 2024]
        assert yearly[0].peaks[0].temperatures == {
            'temperature_calgary': -30.0, 'temperature_edmonton': None
        }
        assert yearly[1].max_demand_mw == 12100.0

    def test_missing_peak_file(self, tmp_path):
        from twelvecp.data_loader import load_peak_history
        with pytest.raises(FileNotFoundError):
            load_peak_history(str(tmp_path / 'missing.json'))


class TestVisualizer:
    """Tests for chart generation."""

    def test_generate_all_charts(self, tmp_path, hourly_year, default_params, peak_analysis):
        from twelvecp.peak_predictor import PredictionConfig, predict_peak_events
        from twelvecp.simulator import run_power_model
        from twelvecp.visualizer import generate_all_charts

        result = run_power_model(hourly_year, default_params)
        events = predict_peak_events(peak_analysis, PredictionConfig.for_winter(2026))

        saved = generate_all_charts(result.monthly, peak_analysis, events, output_dir=str(tmp_path))

        assert len(saved) == 5
        assert any(path.endswith('yearly_trends.png') for path in saved)
        for path in saved:
            assert (tmp_path / path.split('/')[-1]).exists()

    def test_no_inputs_no_charts(self, tmp_path):
        from twelvecp.visualizer import generate_all_charts
        assert generate_all_charts([], output_dir=str(tmp_path)) == []

    def test_plot_returns_figure(self, hourly_year, default_params):
        import matplotlib.pyplot as plt
        from twelvecp.simulator import run_power_model
        from twelvecp.visualizer import plot_curtailment

        result = run_power_model(hourly_year, default_params)
        fig = plot_curtailment(result.monthly)

        assert fig is not None
        plt.close(fig)

    def test_yearly_trend_chart(self, tmp_path, peak_analysis):
        import matplotlib.pyplot as plt
        from twelvecp.visualizer import plot_yearly_trends

        path = tmp_path / 'trends.png'
        fig = plot_yearly_trends(peak_analysis.yearly_trends, save_path=str(path))

        assert path.exists()
        assert len(fig.axes[0].lines) == 2
        plt.close(fig)
