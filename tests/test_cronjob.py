import pytest

from clusterlens.analyzers.cronjob import (
    CronJobAnalyzer,
    CronScheduleError,
    check_cron_schedule_is_valid,
)
from clusterlens.common import Analyzer
from clusterlens.kubernetes import InMemoryClient
from clusterlens.metrics import ANALYZER_ERRORS_METRIC


def _cronjob(name="example-cronjob", namespace="default", schedule="*/1 * * * *", **extra):
    spec = {
        "schedule": schedule,
        "concurrencyPolicy": "Allow",
        "jobTemplate": {
            "metadata": {"labels": {"app": "example-app"}},
            "spec": {
                "template": {
                    "spec": {
                        "containers": [{"name": "example-container", "image": "nginx"}],
                        "restartPolicy": "OnFailure",
                    }
                }
            },
        },
    }
    spec.update(extra)
    return {
        "kind": "CronJob",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "annotations": {"analysisDate": "2022-04-01"},
            "labels": {"app": "example-app"},
        },
        "spec": spec,
    }


def _run(*objects, namespace="default"):
    client = InMemoryClient(*objects)
    return CronJobAnalyzer().analyze(Analyzer(client=client, namespace=namespace))


def test_cronjob_success():
    assert len(_run(_cronjob())) == 0


def test_cronjob_broken():
    results = _run(_cronjob(schedule="*** * * * *"))
    assert len(results) == 1
    assert results[0].name == "default/example-cronjob"
    assert results[0].kind == "CronJob"


def test_cronjob_broken_multiple_namespace_filtering():
    results = _run(
        _cronjob(schedule="*** * * * *"),
        _cronjob(namespace="other-namespace", schedule="*** * * * *"),
    )
    assert len(results) == 1
    assert results[0].name == "default/example-cronjob"
    assert results[0].kind == "CronJob"


def test_broken_schedule_failure_text():
    results = _run(_cronjob(schedule="*** * * * *"))
    text = results[0].error[0].text
    assert text.startswith("CronJob example-cronjob has an invalid schedule: ")
    assert "failed to parse int from ***" in text


def test_suspended_cronjob():
    results = _run(_cronjob(suspend=True))
    assert len(results) == 1
    failure = results[0].error[0]
    assert failure.text == "CronJob example-cronjob is suspended"
    assert [s.unmasked for s in failure.sensitive] == ["default", "example-cronjob"]


def test_suspended_cronjob_skips_schedule_check():
    results = _run(_cronjob(schedule="*** * * * *", suspend=True))
    assert [f.text for f in results[0].error] == ["CronJob example-cronjob is suspended"]


def test_negative_starting_deadline():
    results = _run(_cronjob(startingDeadlineSeconds=-5))
    assert [f.text for f in results[0].error] == [
        "CronJob example-cronjob has a negative starting deadline"
    ]


def test_metric_records_failure_count():
    _run(_cronjob(schedule="*** * * * *", startingDeadlineSeconds=-1))
    samples = {
        (labels["object_name"], labels["namespace"]): value
        for labels, value in ANALYZER_ERRORS_METRIC.samples()
        if labels["analyzer_name"] == "CronJob"
    }
    assert samples == {("example-cronjob", "default"): 2}


@pytest.mark.parametrize(
    "schedule",
    [
        "*/1 * * * *",
        "0 0 * * *",
        "0 0 1 JAN MON",
        "5-10,20 */2 1-15 * 1-5",
        "@daily",
        "@hourly",
        "@every 1h30m",
        "CRON_TZ=UTC 0 0 * * *",
    ],
)
def test_valid_schedules(schedule):
    assert check_cron_schedule_is_valid(schedule) is True


@pytest.mark.parametrize(
    "schedule",
    [
        "*** * * * *",
        "60 * * * *",
        "* 24 * * *",
        "* * 0 * *",
        "* * * 13 *",
        "* * * * 7",
        "* * * *",
        "* * * * * *",
        "5-1 * * * *",
        "1-2-3 * * * *",
        "*/0 * * * *",
        "@reboot",
        "@every forever",
    ],
)
def test_invalid_schedules(schedule):
    with pytest.raises(CronScheduleError):
        check_cron_schedule_is_valid(schedule)


def test_empty_schedule_message():
    with pytest.raises(CronScheduleError, match="empty spec string"):
        check_cron_schedule_is_valid("")


def test_field_count_message():
    with pytest.raises(CronScheduleError, match="expected exactly 5 fields, found 4"):
        check_cron_schedule_is_valid("* * * *")


def test_unrecognized_descriptor_message():
    with pytest.raises(CronScheduleError, match="unrecognized descriptor: @reboot"):
        check_cron_schedule_is_valid("@reboot")