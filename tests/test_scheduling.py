import ast

from briefsmith.synthesis.scheduling import JOB_CATALOGUE, JobFamily, SchedulingSynthesizer


def _names(files) -> list[str]:
    return [f.path.rsplit("/", 1)[1] for f in files]


def test_no_trigger_no_files(make_task) -> None:
    assert SchedulingSynthesizer().synthesize(make_task("Setup Docker and CI/CD")) == []


def test_triggered_layout(make_task) -> None:
    files = SchedulingSynthesizer().synthesize(make_task("Daily email reminders"))
    assert _names(files) == ["scheduler.py", "notification_jobs.py", "queue.py", "queue_processor.py", "types.py"]
    assert all(f.path.startswith("app/jobs/") for f in files)


def test_trigger_without_family_still_emits_core(make_task) -> None:
    synth = SchedulingSynthesizer()
    task = make_task("Periodic sync")
    assert synth.jobs_for(task) == []
    assert _names(synth.synthesize(task)) == ["scheduler.py", "queue.py", "queue_processor.py", "types.py"]


def test_jobs_for_matches_families(make_task) -> None:
    synth = SchedulingSynthesizer()
    task = make_task("Weekly report and nightly backup")
    assert synth.families_for(task) == [JobFamily.REPORT, JobFamily.BACKUP]
    assert [j.name for j in synth.jobs_for(task)] == ["weekly-reports", "monthly-analytics", "daily-backup"]


def test_scheduler_registers_only_matched_jobs(make_task) -> None:
    synth = SchedulingSynthesizer()
    files = synth.synthesize(make_task("Cleanup old tasks on a schedule"))
    scheduler = files[0].content

    assert '"cleanup-completed-tasks": JobSpec("0 0 * * 0"' in scheduler
    assert '"cleanup-expired-sessions": JobSpec("0 */6 * * *"' in scheduler
    assert "daily-reminders" not in scheduler
    assert "from app.jobs import cleanup_jobs" in scheduler
    assert "def run_job_manually" in scheduler
    ast.parse(scheduler)


def test_empty_job_table_is_valid_python(make_task) -> None:
    scheduler = SchedulingSynthesizer().render_scheduler([])
    assert "JOBS: dict[str, JobSpec] = {\n}" in scheduler
    ast.parse(scheduler)


def test_catalogue_cadences() -> None:
    cadences = {job.name: job.cron for job in JOB_CATALOGUE}
    assert cadences == {
        "daily-reminders": "0 9 * * *",
        "overdue-alerts": "0 */4 * * *",
        "cleanup-completed-tasks": "0 0 * * 0",
        "cleanup-expired-sessions": "0 */6 * * *",
        "weekly-reports": "0 8 * * 1",
        "monthly-analytics": "0 9 1 * *",
        "daily-backup": "0 2 * * *",
    }
    for job in JOB_CATALOGUE:
        assert job.module.endswith("_jobs")
        assert job.function


def test_queue_artifact_matches_business_copy(make_task) -> None:
    from briefsmith.synthesis.business_logic import BusinessLogicSynthesizer

    task = make_task("Daily notification digest")
    scheduling_queue = next(f for f in SchedulingSynthesizer().synthesize(task) if f.path == "app/jobs/queue.py")
    business_queue = next(f for f in BusinessLogicSynthesizer().synthesize(task) if f.path == "app/jobs/queue.py")
    assert scheduling_queue == business_queue
