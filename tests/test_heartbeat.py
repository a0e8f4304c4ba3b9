import asyncio

from condition_reports.models.models import ActivityLog
from condition_reports.repositories import MemoryStore, memory_repositories
from condition_reports.services.activity import log_activity, prune_activity, recent_activity
from condition_reports.services.heartbeat import Heartbeat


def test_heartbeat_runs_until_stopped():
    beats = []

    async def scenario():
        heartbeat = Heartbeat(interval_seconds=0.01, beat=lambda: beats.append(1))
        heartbeat.start()
        heartbeat.start()  # already running; no second task
        assert heartbeat.running
        await asyncio.sleep(0.1)
        await heartbeat.stop()
        assert not heartbeat.running
        return heartbeat.beats

    counted = asyncio.run(scenario())
    assert counted >= 2
    assert counted <= len(beats)


def test_heartbeat_survives_a_failing_beat():
    calls = {"value": 0}

    def flaky():
        calls["value"] += 1
        if calls["value"] == 1:
            raise RuntimeError("database unavailable")

    async def scenario():
        heartbeat = Heartbeat(interval_seconds=0.01, beat=flaky)
        heartbeat.start()
        await asyncio.sleep(0.1)
        await heartbeat.stop()
        return heartbeat.beats

    assert asyncio.run(scenario()) >= 1
    assert calls["value"] >= 2


def test_stop_without_start_is_a_no_op():
    asyncio.run(Heartbeat(interval_seconds=1).stop())


def test_activity_log_is_pruned_to_retention():
    repos = memory_repositories(MemoryStore())
    for index in range(5):
        log_activity(repos, "heartbeat", None, {"beat": index})

    assert prune_activity(repos, keep=2) == 3
    entries = recent_activity(repos, limit=10)
    assert [entry.details["beat"] for entry in entries] == [4, 3]


def test_activity_metadata_is_made_json_safe(sql_repos):
    entry = log_activity(sql_repos, "report_created", "user-1", {"report_id": "r1", "when": object()})
    assert isinstance(entry, ActivityLog)
    assert entry.details["report_id"] == "r1"
    assert isinstance(entry.details["when"], str)


def test_user_activity_is_not_crowded_out_by_heartbeats(repos):
    log_activity(repos, "report_created", "user-1", {"report_id": "r1"})
    log_activity(repos, "report_created", "user-2", {"report_id": "r2"})
    for index in range(5):
        log_activity(repos, "heartbeat", None, {"beat": index})

    entries = recent_activity(repos, limit=3, user_id="user-1")
    assert [(entry.activity_type, entry.details["report_id"]) for entry in entries] == [("report_created", "r1")]
    assert len(recent_activity(repos, limit=3)) == 3
