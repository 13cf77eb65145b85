from unittest.mock import AsyncMock

import pytest

from rubber import cli
from rubber.models.review import RecentListing
from rubber.services.review_orchestrator import FatalFetchError, ReviewOrchestrator

from conftest import make_pull_request


@pytest.fixture
def orchestrator():
    fake = AsyncMock(spec=ReviewOrchestrator)
    fake.generate_report.return_value = "REPORT\n"
    fake.list_recent.return_value = RecentListing(
        pull_requests=[make_pull_request(42)], text="LISTING\n"
    )
    return fake


def _args(*argv):
    return cli.build_parser().parse_args(list(argv))


@pytest.mark.asyncio
async def test_report_for_given_number(orchestrator):
    output = await cli.run(_args("acme", "widgets", "42"), orchestrator)

    assert output == "REPORT\n"
    orchestrator.generate_report.assert_awaited_once_with("acme", "widgets", 42)


@pytest.mark.asyncio
async def test_invalid_number_argument(orchestrator):
    output = await cli.run(_args("acme", "widgets", "abc"), orchestrator)

    assert output == "Invalid PR number: abc"
    orchestrator.generate_report.assert_not_awaited()


@pytest.mark.asyncio
async def test_interactive_selection(orchestrator, capsys):
    prompts = []

    def answer(prompt):
        prompts.append(prompt)
        return " 42 \n"

    output = await cli.run(_args("acme", "widgets"), orchestrator, limit=5, input_func=answer)

    assert output == "REPORT\n"
    assert capsys.readouterr().out == "LISTING\n"
    assert prompts == [cli.PROMPT]
    orchestrator.list_recent.assert_awaited_once_with("acme", "widgets", limit=5)


@pytest.mark.asyncio
async def test_interactive_quit_and_unknown_number(orchestrator):
    assert await cli.run(_args("acme", "widgets"), orchestrator, input_func=lambda _: "Q") == ""

    output = await cli.run(_args("acme", "widgets"), orchestrator, input_func=lambda _: "7")

    assert output == "PR #7 not found in the current list."
    orchestrator.generate_report.assert_not_awaited()


@pytest.mark.asyncio
async def test_limit_option_overrides_default(orchestrator):
    await cli.run(_args("acme", "widgets", "--limit", "3"), orchestrator, input_func=lambda _: "q")

    orchestrator.list_recent.assert_awaited_once_with("acme", "widgets", limit=3)


def test_main_exits_non_zero_on_fatal_error(monkeypatch):
    async def fail(args, settings):
        raise FatalFetchError("Unable to fetch PR #1", "fetch_pull_request")

    monkeypatch.setattr(cli, "_main", fail)

    assert cli.main(["acme", "widgets", "1"]) == 1


def test_main_prints_report(monkeypatch, capsys):
    async def succeed(args, settings):
        return "REPORT"

    monkeypatch.setattr(cli, "_main", succeed)

    assert cli.main(["acme", "widgets", "1"]) == 0
    assert capsys.readouterr().out == "REPORT\n"


@pytest.mark.parametrize("limit", ["-1", "0", "101", "ten"])
def test_listing_limit_out_of_range_is_rejected(limit):
    with pytest.raises(SystemExit):
        _args("acme", "widgets", "--limit", limit)


def test_listing_limit_accepts_bounds():
    assert _args("acme", "widgets", "--limit", "100").limit == 100
    assert _args("acme", "widgets", "--limit", "1").limit == 1
