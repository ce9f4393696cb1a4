from datetime import date
from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from dbmonitor.dashboard.aggregator import StatusTotals, monthly_report, yearly_report
from dbmonitor.monitoring.enums import CheckStatus
from tests.helpers import submit_daily

P, F, W, N = CheckStatus.PASS, CheckStatus.FAIL, CheckStatus.WARNING, CheckStatus.NOT_CHECKED


def _check(day: date, status: CheckStatus) -> SimpleNamespace:
    return SimpleNamespace(check_date=day, status=status)


def test_pass_rate_is_zero_without_checks() -> None:
    assert StatusTotals().pass_rate == 0.0


@pytest.mark.parametrize(
    "statuses,rate",
    [
        ([P, P, P, P], 100.0),
        ([P, F, W], 33.3),
        ([P, P, N], 66.7),
        ([F, W], 0.0),
    ],
)
def test_pass_rate_counts_every_check(statuses, rate) -> None:
    totals = StatusTotals()
    for status in statuses:
        totals.add(status)
    assert totals.total == len(statuses)
    assert totals.pass_rate == rate


def test_monthly_report_fills_every_day() -> None:
    checks = [
        _check(date(2024, 2, 1), P),
        _check(date(2024, 2, 1), F),
        _check(date(2024, 2, 29), W),
        _check(date(2024, 3, 1), F),
        _check(date(2023, 2, 1), F),
    ]
    report = monthly_report(checks, 2024, 2)

    assert len(report.days) == 29
    assert report.days[0].date == date(2024, 2, 1)
    assert (report.days[0].totals.passed, report.days[0].totals.failed) == (1, 1)
    assert report.days[28].totals.warnings == 1
    assert report.days[10].totals.total == 0
    assert report.days_with_data == 2
    assert (report.totals.passed, report.totals.failed, report.totals.warnings) == (1, 1, 1)
    assert report.totals.pass_rate == 33.3


def test_monthly_report_without_checks() -> None:
    report = monthly_report([], 2023, 4)
    assert len(report.days) == 30
    assert report.days_with_data == 0
    assert report.totals.pass_rate == 0.0


def test_yearly_report_buckets_by_month() -> None:
    checks = [
        _check(date(2024, 1, 5), P),
        _check(date(2024, 1, 6), P),
        _check(date(2024, 12, 31), F),
        _check(date(2025, 1, 1), F),
    ]
    report = yearly_report(checks, 2024)

    assert [m.month for m in report.months] == list(range(1, 13))
    assert report.months[0].totals.passed == 2
    assert report.months[0].totals.pass_rate == 100.0
    assert report.months[11].totals.failed == 1
    assert report.months[5].totals.total == 0
    assert report.totals.total == 3
    assert report.totals.pass_rate == 66.7


@pytest.mark.anyio
async def test_monthly_report_endpoint(client: AsyncClient, admin_headers) -> None:
    day = date(2024, 2, 10)
    await submit_daily(client, admin_headers, check_date=day, status="pass")
    await submit_daily(
        client, admin_headers, check_date=day, check="Active Session Count", status="fail",
    )
    await submit_daily(client, admin_headers, database_id="cpgdb", check_date=day, status="pass")

    resp = await client.get(
        "/api/dashboard/reports/monthly",
        params={"year": 2024, "month": 2},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["overall"]["totals"] == {
        "passed": 2, "failed": 1, "warnings": 0, "total": 3, "pass_rate": 66.7,
    }
    assert body["overall"]["days_with_data"] == 1
    assert len(body["overall"]["days"]) == 29

    reports = {r["database_id"]: r for r in body["databases"]}
    assert reports["cprdb"]["totals"]["pass_rate"] == 50.0
    assert reports["cpgdb"]["totals"]["pass_rate"] == 100.0
    assert reports["cprdb2"]["totals"]["total"] == 0
    assert reports["cprdb2"]["totals"]["pass_rate"] == 0.0

    resp = await client.get(
        "/api/dashboard/reports/monthly",
        params={"year": 2024, "month": 2, "database_id": "cprdb"},
        headers=admin_headers,
    )
    assert [r["database_id"] for r in resp.json()["databases"]] == ["cprdb"]
    assert resp.json()["overall"]["totals"]["total"] == 2


@pytest.mark.anyio
async def test_yearly_report_endpoint(client: AsyncClient, admin_headers) -> None:
    await submit_daily(client, admin_headers, check_date=date(2024, 3, 1), status="pass")
    await submit_daily(client, admin_headers, check_date=date(2024, 7, 1), status="warning")

    resp = await client.get(
        "/api/dashboard/reports/yearly",
        params={"year": 2024, "database_id": "cprdb"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["overall"]["totals"]["total"] == 2
    assert body["overall"]["totals"]["pass_rate"] == 50.0
    months = body["databases"][0]["months"]
    assert months[2]["totals"]["passed"] == 1
    assert months[6]["totals"]["warnings"] == 1


@pytest.mark.anyio
async def test_report_parameters_are_validated(client: AsyncClient, user_headers) -> None:
    resp = await client.get(
        "/api/dashboard/reports/monthly", params={"month": 13}, headers=user_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"

    resp = await client.get(
        "/api/dashboard/reports/yearly", params={"database_id": "missing"}, headers=user_headers,
    )
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_reports_require_login(client: AsyncClient) -> None:
    assert (await client.get("/api/dashboard/reports/monthly")).status_code == 401
    assert (await client.get("/api/dashboard/reports/yearly")).status_code == 401
