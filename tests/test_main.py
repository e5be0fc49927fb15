"""Tests for main entry point module."""

import asyncio
import os
from unittest.mock import MagicMock, patch

import pytest

from mindstore.core.config import reset_config
from mindstore.core.content_saver import ContentSaver
from mindstore.core.events import ContentEvents
from mindstore.core.exceptions import ApiError
from mindstore.core.library_api import BatchDeleteResult
from mindstore.core.logger import reset_logging
from mindstore.main import (
    create_argument_parser,
    main,
    run_add,
    run_delete,
    run_list,
    run_watch,
)
from mindstore.output.library_report import LibraryReportWriter

from conftest import completed_item, page_of, pending_item


@pytest.fixture(autouse=True)
def clean_state():
    reset_config()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def writer():
    return LibraryReportWriter("http://localhost:3001/api")


class TestCLIArguments:
    """Argument parsing."""

    def test_list_defaults(self) -> None:
        args = create_argument_parser().parse_args(["list"])

        assert args.command == "list"
        assert args.pages == 1
        assert args.verbose is False
        assert args.interval is None
        assert args.platform == "all"
        assert args.search == ""

    def test_list_filters(self) -> None:
        args = create_argument_parser().parse_args(
            ["list", "--platform", "youtube", "--search", "talk"]
        )

        assert args.platform == "youtube"
        assert args.search == "talk"

    def test_list_rejects_unknown_platform(self) -> None:
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["list", "--platform", "myspace"])

    def test_global_flags(self) -> None:
        args = create_argument_parser().parse_args(["-v", "--interval", "2", "watch"])

        assert args.verbose is True
        assert args.interval == 2.0
        assert args.timeout is None

    def test_watch_timeout(self) -> None:
        args = create_argument_parser().parse_args(["watch", "--timeout", "120"])

        assert args.timeout == 120.0

    def test_add_url(self) -> None:
        args = create_argument_parser().parse_args(["add", "https://youtu.be/x"])

        assert args.url == "https://youtu.be/x"

    def test_delete_hashes(self) -> None:
        args = create_argument_parser().parse_args(["delete", "a", "b", "-y"])

        assert args.hashes == ["a", "b"]
        assert args.yes is True

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args([])


class TestMain:
    """Exit codes from main()."""

    def test_missing_user_is_configuration_error(self, capsys) -> None:
        with patch.dict(os.environ, {}, clear=True):
            code = main(["list"])

        assert code == 2
        assert "MINDSTORE_USER_ID" in capsys.readouterr().err

    def test_invalid_env_is_configuration_error(self, capsys) -> None:
        env = {"MINDSTORE_USER_ID": "u1", "MINDSTORE_PAGE_SIZE": "lots"}
        with patch.dict(os.environ, env, clear=True):
            code = main(["list"])

        assert code == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_rejects_zero_pages(self) -> None:
        with patch.dict(os.environ, {"MINDSTORE_USER_ID": "u1"}, clear=True):
            with pytest.raises(SystemExit):
                main(["list", "--pages", "0"])

    def test_dispatches_command(self) -> None:
        with patch.dict(os.environ, {"MINDSTORE_USER_ID": "u1"}, clear=True):
            with patch("mindstore.main.run_command", new=MagicMock(return_value=0)) as run_command:
                with patch("mindstore.main.asyncio.run", side_effect=lambda coro: coro) as run:
                    code = main(["list"])

        assert code == 0
        run.assert_called_once()
        parsed_args, config = run_command.call_args.args
        assert parsed_args.command == "list"
        assert config.user_id == "u1"


class TestRunList:
    """The list command."""

    @pytest.mark.asyncio
    async def test_prints_first_page(self, make_reconciler, mock_api, writer, capsys):
        mock_api.fetch_user_content.return_value = page_of(completed_item("c1"))
        reconciler = make_reconciler()

        code = await run_list(reconciler, writer, pages=1)

        assert code == 0
        output = capsys.readouterr().out
        assert "Library: 1 items (page 1)" in output
        assert "c1" in output
        assert reconciler.disposed

    @pytest.mark.asyncio
    async def test_loads_several_pages(self, make_reconciler, mock_api, writer, capsys):
        mock_api.fetch_user_content.side_effect = [
            page_of(completed_item("c1")),
            page_of(completed_item("c2")),
            page_of(),
        ]
        reconciler = make_reconciler(page_size=1)

        await run_list(reconciler, writer, pages=5)

        assert [i.key for i in reconciler.items] == ["c1", "c2"]
        assert mock_api.fetch_user_content.await_count == 3

    @pytest.mark.asyncio
    async def test_filters_by_platform_and_search(self, make_reconciler, mock_api, writer, capsys):
        mock_api.fetch_user_content.return_value = page_of(
            pending_item("p1"),
            completed_item("c1", title="Great talk"),
            completed_item("c2", title="Cooking show"),
        )

        code = await run_list(make_reconciler(), writer, pages=1, platform="youtube", query="TALK")

        assert code == 0
        output = capsys.readouterr().out
        assert "Great talk" in output
        assert "Cooking show" not in output
        assert "p1" not in output
        assert "Library: 1 items (page 1)" in output

    @pytest.mark.asyncio
    async def test_failed_load_exits_one(self, make_reconciler, mock_api, writer, capsys):
        mock_api.fetch_user_content.side_effect = ApiError("Network error", 0)

        code = await run_list(make_reconciler(), writer, pages=1)

        assert code == 1
        assert "ERROR: Network error" in capsys.readouterr().out


class TestRunWatch:
    """The watch command polls until convergence."""

    @pytest.mark.asyncio
    async def test_returns_once_converged(self, make_reconciler, mock_api, writer, clock, capsys):
        mock_api.fetch_user_content.side_effect = [
            page_of(pending_item("p1")),
            page_of(completed_item("p1")),
        ]
        reconciler = make_reconciler()

        task = asyncio.create_task(run_watch(reconciler, writer, timeout=None))
        await clock.advance(5)
        code = await task

        assert code == 0
        output = capsys.readouterr().out
        assert "pending=1 failed=0 completed=0 [polling]" in output
        assert "pending=0 failed=0 completed=1" in output
        assert reconciler.disposed

    @pytest.mark.asyncio
    async def test_timeout_exits_one(self, make_reconciler, mock_api, writer):
        mock_api.fetch_user_content.return_value = page_of(pending_item("p1"))
        reconciler = make_reconciler()

        code = await run_watch(reconciler, writer, timeout=0.01)

        assert code == 1
        assert not reconciler.polling


class TestRunAdd:
    @pytest.mark.asyncio
    async def test_saved(self, mock_api, capsys):
        code = await run_add(ContentSaver(mock_api, "u1"), "https://youtu.be/x")

        assert code == 0
        assert "Content saved!" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failure(self, mock_api, capsys):
        mock_api.save_url.side_effect = ApiError("Invalid URL", 400)

        code = await run_add(ContentSaver(mock_api, "u1"), "nope")

        assert code == 1
        assert "Invalid URL" in capsys.readouterr().out


class TestRunDelete:
    @pytest.mark.asyncio
    async def test_deletes_without_prompt(self, make_reconciler, mock_api, capsys):
        mock_api.fetch_user_content.return_value = page_of(completed_item("a"), completed_item("b"))
        mock_api.delete_multiple.return_value = BatchDeleteResult(deleted=["a", "b"])
        reconciler = make_reconciler()

        code = await run_delete(reconciler, ContentEvents(), ["a", "b", "a"], assume_yes=True)

        assert code == 0
        mock_api.delete_multiple.assert_awaited_once_with(["a", "b"], "u1")
        assert "Deleted 2 items" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_reports_partial_failure(self, make_reconciler, mock_api, capsys):
        mock_api.fetch_user_content.return_value = page_of(completed_item("a"), completed_item("b"))
        mock_api.delete_multiple.return_value = BatchDeleteResult(
            deleted=["a"], failures={"b": ApiError("Internal error", 500)}
        )

        code = await run_delete(make_reconciler(), ContentEvents(), ["a", "b"], assume_yes=True)

        assert code == 1
        assert "Failed to delete 1 of 2 items: b" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_prompt_declined(self, make_reconciler, mock_api, capsys):
        mock_api.fetch_user_content.return_value = page_of(completed_item("a"))
        with patch("builtins.input", return_value="n"):
            code = await run_delete(make_reconciler(), ContentEvents(), ["a"], assume_yes=False)

        assert code == 1
        mock_api.delete_multiple.assert_not_awaited()
        assert "Nothing deleted" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_skips_ids_not_in_library(self, make_reconciler, mock_api, capsys):
        mock_api.fetch_user_content.return_value = page_of(completed_item("a"))
        mock_api.delete_multiple.return_value = BatchDeleteResult(deleted=["a"])

        code = await run_delete(make_reconciler(), ContentEvents(), ["a", "ghost"], assume_yes=True)

        assert code == 0
        mock_api.delete_multiple.assert_awaited_once_with(["a"], "u1")
        output = capsys.readouterr().out
        assert "Not in your library: ghost" in output
        assert "Deleted 1 items" in output

    @pytest.mark.asyncio
    async def test_nothing_listed_deletes_nothing(self, make_reconciler, mock_api, capsys):
        code = await run_delete(make_reconciler(), ContentEvents(), ["ghost"], assume_yes=True)

        assert code == 1
        mock_api.delete_multiple.assert_not_awaited()
        assert "Nothing deleted" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_finds_ids_on_later_pages(self, make_reconciler, mock_api, capsys):
        mock_api.fetch_user_content.side_effect = [
            page_of(completed_item("a")),
            page_of(completed_item("b")),
            page_of(completed_item("a")),
        ]
        mock_api.delete_multiple.return_value = BatchDeleteResult(deleted=["b"])

        code = await run_delete(make_reconciler(page_size=1), ContentEvents(), ["b"], assume_yes=True)

        assert code == 0
        mock_api.delete_multiple.assert_awaited_once_with(["b"], "u1")

    @pytest.mark.asyncio
    async def test_failed_load_exits_one(self, make_reconciler, mock_api, capsys):
        mock_api.fetch_user_content.side_effect = ApiError("Network error", 0)

        code = await run_delete(make_reconciler(), ContentEvents(), ["a"], assume_yes=True)

        assert code == 1
        mock_api.delete_multiple.assert_not_awaited()
        assert "Network error" in capsys.readouterr().out
