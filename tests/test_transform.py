import datetime as dt
import math

from stockterm.models import CustomWindow, OhlcvPoint, Scale, Series, TimeRange, Window
from stockterm.transform import (axis_label, filter_window, generate_ticks, invert_value, nearest_point, project,
                                 scale_value, window_cutoff)

NOW = dt.datetime(2024, 6, 15, 14, 30)


def make_points(start, count, step=dt.timedelta(days=1)):
    points = []
    for i in range(count):
        close = 100.0 + i
        points.append(OhlcvPoint(start + step * i, close - 1, close + 2, close - 2, close, 1000 + i))
    return points


def test_day_window_starts_at_midnight():
    points = make_points(dt.date(2024, 6, 13), 3)
    kept = filter_window(points, Window.DAY, now=NOW)
    assert [p.date for p in kept] == [dt.date(2024, 6, 15)]
    assert window_cutoff(Window.DAY, NOW) == dt.datetime(2024, 6, 15)


def test_week_and_month_cutoffs_are_exclusive():
    points = make_points(dt.date(2024, 5, 1), 46)
    week = filter_window(points, Window.WEEK, now=NOW)
    assert week[0].date == dt.date(2024, 6, 9)
    month = filter_window(points, Window.MONTH, now=NOW)
    assert month[0].date == dt.date(2024, 5, 16)
    assert window_cutoff(Window.QUARTER, NOW) == dt.datetime(2024, 3, 15, 14, 30)


def test_window_filter_is_idempotent():
    points = make_points(dt.date(2023, 1, 1), 600)
    for window in Window:
        once = filter_window(points, window, now=NOW)
        assert filter_window(once, window, now=NOW) == once


def test_max_and_custom_windows():
    points = make_points(dt.date(2024, 1, 1), 10)
    assert filter_window(points, Window.MAX, now=NOW) == points
    custom = CustomWindow(dt.date(2024, 1, 3), dt.date(2024, 1, 5))
    assert [p.date.day for p in filter_window(points, custom)] == [3, 4, 5]
    assert custom.time_range is TimeRange.MAX


def test_log_scale_round_trip():
    for value in (0.001, 0.5, 1.0, 104.0, 12345.678, 3.5e9):
        scaled = scale_value(value, Scale.LOG)
        assert math.isclose(invert_value(scaled, Scale.LOG), value, rel_tol=1e-9)
    assert scale_value(0.0, Scale.LOG) == 0.0
    assert scale_value(42.0, Scale.LINEAR) == 42.0


def test_axis_label_inverts_scale():
    assert axis_label(math.log1p(1234.5), Scale.LOG) == '$1,234.50'
    assert axis_label(99.999, Scale.LINEAR) == '$100.00'


def test_ticks_hourly_for_day_window():
    points = make_points(dt.date(2024, 6, 15), 1)
    ticks = generate_ticks(points, Window.DAY, now=NOW)
    assert len(ticks) == 8
    assert ticks[0] == dt.datetime(2024, 6, 15)
    assert all(t.minute == 0 for t in ticks)


def test_ticks_monthly_for_year_window():
    points = make_points(dt.date(2023, 6, 16), 365)
    ticks = generate_ticks(points, Window.YEAR, now=NOW)
    assert 4 <= len(ticks) <= 10
    assert all(t.day == 1 for t in ticks)
    assert ticks == sorted(ticks)


def test_ticks_bounded_for_long_spans():
    points = make_points(dt.date(1990, 1, 31), 400, step=dt.timedelta(days=30))
    ticks = generate_ticks(points, Window.MAX, now=NOW)
    assert 2 <= len(ticks) <= 10
    assert all(t.month == 1 and t.day == 1 for t in ticks)

    custom = CustomWindow(dt.date(1990, 1, 1), dt.date(2024, 6, 1))
    assert len(generate_ticks(points, custom)) <= 10


def test_ticks_empty_input():
    assert generate_ticks([], Window.MONTH, now=NOW) == []


def test_nearest_point():
    points = make_points(dt.date(2024, 1, 1), 3, step=dt.timedelta(days=2))
    assert nearest_point(points, dt.datetime(2024, 1, 4, 12)).date == dt.date(2024, 1, 5)
    # exactly between 01-01 and 01-03: first found wins
    assert nearest_point(points, dt.date(2024, 1, 2)).date == dt.date(2024, 1, 1)
    assert nearest_point([], NOW) is None


def test_project_applies_window_and_scale():
    series = Series('IBM', TimeRange.DAY, make_points(dt.date(2024, 5, 1), 46))
    display = project(series, Window.WEEK, Scale.LOG, now=NOW)
    assert display.symbol == 'IBM'
    assert len(display.points) == len(display.values) == 7
    assert display.values[-1].close == math.log1p(display.points[-1].close)
    assert display.ticks


def test_project_empty_series():
    display = project(Series('IBM', TimeRange.DAY), Window.MONTH, Scale.LINEAR, now=NOW)
    assert display.points == [] and display.values == [] and display.ticks == []


def test_window_fetch_ranges():
    assert {w: w.time_range for w in Window} == {
        Window.DAY: TimeRange.DAY,
        Window.WEEK: TimeRange.DAY,
        Window.MONTH: TimeRange.DAY,
        Window.QUARTER: TimeRange.MONTH,
        Window.YEAR: TimeRange.YEAR,
        Window.MAX: TimeRange.MAX,
    }
    assert TimeRange.MONTH.api_function == 'TIME_SERIES_WEEKLY'
    assert TimeRange.MONTH.max_points == 12
