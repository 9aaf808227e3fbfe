from typing import Union

from .models import FinancialStatementRow, StatementKind

MAX_REPORT_YEARS = 3

_ANNUAL_KINDS = (StatementKind.INCOME_STATEMENT, StatementKind.BALANCE_SHEET, StatementKind.CASH_FLOW)


def _coerce_kind(kind):
    if isinstance(kind, StatementKind):
        return kind
    try:
        return StatementKind(str(kind).upper())
    except ValueError:
        return None


def _report_year(report: dict):
    raw = str(report.get('fiscalDateEnding') or '')[:4]
    return int(raw) if len(raw) == 4 and raw.isdigit() else None


def parse_statement(kind: Union[StatementKind, str], payload: dict) -> list[FinancialStatementRow]:
    """Turn a statement response into table rows sorted by metric name.

    Income, balance and cash-flow responses keep at most the three most recent annual
    reports, grouped per metric with their fiscal year. An overview response becomes
    one row per key. Unknown kinds and unexpected shapes yield no rows.
    """
    kind = _coerce_kind(kind)
    if kind is None or not isinstance(payload, dict):
        return []

    if kind is StatementKind.OVERVIEW:
        rows = [FinancialStatementRow(metric=str(k), values=[(None, str(v))]) for k, v in payload.items()]
        return sorted(rows, key=lambda r: r.metric)

    if kind not in _ANNUAL_KINDS:
        return []

    reports = payload.get('annualReports')
    if not isinstance(reports, list):
        return []

    grouped: dict[str, list] = {}
    for report in reports[:MAX_REPORT_YEARS]:
        if not isinstance(report, dict):
            continue
        year = _report_year(report)
        if year is None:
            continue
        for metric, value in report.items():
            if metric == 'fiscalDateEnding':
                continue
            grouped.setdefault(metric, []).append((year, str(value)))

    return [FinancialStatementRow(metric=m, values=v) for m, v in sorted(grouped.items())]
