"""Tests for the due-date sweep, reminder delivery and scheduling."""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from slack_sdk.errors import SlackApiError

from bookbot.scheduler import JOB_ID, start_scheduler
from bookbot.sweeper import DueDateSweeper, SlackReminderNotifier, ON_OR_BEFORE

TODAY = date(2024, 1, 4)


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def seeded(store, make_record):
    records = {
        "yesterday": make_record(title="Yesterday", due="2024-01-03"),
        "today": make_record(title="Today", due="2024-01-04"),
        "tomorrow": make_record(title="Tomorrow", due="2024-01-05"),
    }
    store.save(records.values())
    return records


class TestSweepPartition:
    def test_yesterday_today_tomorrow(self, store, notifier, seeded):
        result = DueDateSweeper(store, notifier).sweep(TODAY)

        notifier.assert_called_once_with(seeded["today"])
        assert store.load() == [seeded["tomorrow"]]
        assert (result.notified, result.failed, result.retained, result.dropped) == (1, 0, 1, 1)

    def test_failed_delivery_is_retained(self, store, notifier, seeded):
        notifier.side_effect = RuntimeError("channel unreachable")

        result = DueDateSweeper(store, notifier).sweep(TODAY)

        assert store.load() == [seeded["today"], seeded["tomorrow"]]
        assert result.failed == 1

    def test_failed_delivery_is_dropped_next_day(self, store, notifier, seeded):
        notifier.side_effect = RuntimeError("channel unreachable")
        sweeper = DueDateSweeper(store, notifier)
        sweeper.sweep(TODAY)

        notifier.reset_mock(side_effect=True)
        sweeper.sweep(date(2024, 1, 5))

        notifier.assert_called_once_with(seeded["tomorrow"])
        assert store.load() == []

    def test_unpadded_due_date_is_understood(self, store, notifier, make_record):
        due_today = make_record(title="Today", due="2024-1-4")
        due_later = make_record(title="Later", due="2024-1-5")
        store.save([due_today, due_later])

        result = DueDateSweeper(store, notifier).sweep(TODAY)

        notifier.assert_called_once_with(due_today)
        assert store.load() == [due_later]
        assert result.dropped == 0

    def test_unreadable_store_sweeps_nothing(self, store, store_path, notifier):
        store_path.parent.mkdir(parents=True)
        store_path.write_bytes(b"\xff\xfe not json")

        result = DueDateSweeper(store, notifier).sweep(TODAY)

        notifier.assert_not_called()
        assert result.notified == 0

    def test_invalid_due_date_is_dropped(self, store, notifier, make_record):
        store.save([make_record(due="next week")])

        result = DueDateSweeper(store, notifier).sweep(TODAY)

        notifier.assert_not_called()
        assert store.load() == []
        assert result.dropped == 1

    def test_empty_store(self, store, notifier):
        result = DueDateSweeper(store, notifier).sweep(TODAY)

        notifier.assert_not_called()
        assert result.notified == 0

    def test_delivers_every_record_due_today(self, store, notifier, make_record):
        store.save([make_record(user_id="U1"), make_record(user_id="U2")])

        DueDateSweeper(store, notifier).sweep(TODAY)

        assert notifier.call_count == 2
        assert store.load() == []


class TestOnOrBeforePolicy:
    def test_past_due_records_are_delivered(self, store, notifier, seeded):
        DueDateSweeper(store, notifier, policy=ON_OR_BEFORE).sweep(TODAY)

        delivered = [c.args[0] for c in notifier.call_args_list]
        assert delivered == [seeded["yesterday"], seeded["today"]]
        assert store.load() == [seeded["tomorrow"]]

    def test_failed_delivery_is_retried_next_day(self, store, notifier, seeded):
        notifier.side_effect = RuntimeError("down")
        sweeper = DueDateSweeper(store, notifier, policy=ON_OR_BEFORE)
        sweeper.sweep(TODAY)

        notifier.reset_mock(side_effect=True)
        sweeper.sweep(date(2024, 1, 5))

        assert notifier.call_count == 3
        assert store.load() == []

    def test_unknown_policy_rejected(self, store, notifier):
        with pytest.raises(ValueError):
            DueDateSweeper(store, notifier, policy="whenever")


class TestSlackReminderNotifier:
    def test_posts_to_borrowing_channel(self, make_record):
        client = MagicMock()
        record = make_record()

        SlackReminderNotifier(client)(record)

        kwargs = client.chat_postMessage.call_args.kwargs
        assert kwargs["channel"] == "C_LIBRARY"
        assert kwargs["text"] == '<@U123>, your book "Dune" is due today!'
        assert kwargs["blocks"][1]["slack_file"]["url"] == record.image_url

    def test_reminder_channel_override(self, make_record):
        client = MagicMock()

        SlackReminderNotifier(client, reminder_channel="C_REMIND")(make_record())

        assert client.chat_postMessage.call_args.kwargs["channel"] == "C_REMIND"

    def test_no_image_block_without_image(self, make_record):
        client = MagicMock()

        SlackReminderNotifier(client)(make_record(image_url=""))

        assert len(client.chat_postMessage.call_args.kwargs["blocks"]) == 1

    def test_slack_error_counts_as_failure(self, store, make_record):
        client = MagicMock()
        client.chat_postMessage.side_effect = SlackApiError(
            "channel_not_found", {"ok": False, "error": "channel_not_found"}
        )
        store.save([make_record()])

        result = DueDateSweeper(store, SlackReminderNotifier(client)).sweep(TODAY)

        assert result.failed == 1
        assert len(store.load()) == 1


class TestScheduler:
    def test_daily_job_at_configured_hour(self):
        sweeper = MagicMock()

        with patch("bookbot.scheduler.BackgroundScheduler") as scheduler_cls:
            scheduler = start_scheduler(sweeper, hour=8)

        scheduler.start.assert_called_once()
        kwargs = scheduler.add_job.call_args.kwargs
        assert kwargs["id"] == JOB_ID
        assert kwargs["max_instances"] == 1
        trigger_fields = {f.name: str(f) for f in kwargs["trigger"].fields}
        assert trigger_fields["hour"] == "8"
        assert trigger_fields["minute"] == "0"
        assert scheduler is scheduler_cls.return_value

    def test_job_errors_are_logged(self, caplog):
        sweeper = MagicMock()
        sweeper.sweep.side_effect = RuntimeError("boom")

        with patch("bookbot.scheduler.BackgroundScheduler"):
            scheduler = start_scheduler(sweeper)

        job = scheduler.add_job.call_args.kwargs["func"]
        job()

        sweeper.sweep.assert_called_once()
        assert "Scheduled check for due books failed" in caplog.text
