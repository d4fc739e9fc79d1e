"""Test the job lifecycle service: create, apply, complete, delete."""

from datetime import date

import pytest

from wageconnect.exceptions import ForbiddenAction, JobNotFound, JobStateConflict
from wageconnect.schemas.job import JobForm
from wageconnect.services import job_service
from wageconnect.services.notifier import Notifier


def _form(**overrides) -> JobForm:
    values = {
        "title": "Paint Wall",
        "description": "Paint one wall of the living room",
        "wage": 100,
        "location": "Salt Lake, Kolkata",
        "deadline": "",
    }
    values.update(overrides)
    return JobForm(**values)


class TestPaintWallScenario:
    """Walk one job through its whole life."""

    async def test_full_lifecycle(self, db, make_user, as_identity, events, sent_mail, notifications_for, load_job):
        poster = make_user(name="Alice", email="alice@example.com", role="user")
        first = make_user(name="Ravi", email="ravi@example.com", role="worker")
        second = make_user(name="Fatima", email="fatima@example.com", role="worker")
        notifier = Notifier(db)

        # Post: every worker hears about it
        job = await job_service.create_job(db, notifier, as_identity(poster), _form())
        assert load_job(job.id).status == "open"
        assert ("New Job", "New job posted: Paint Wall", False) in notifications_for(first)
        assert ("New Job", "New job posted: Paint Wall", False) in notifications_for(second)
        assert events[-1]["event"] == "job:new"
        assert events[-1]["rooms"] == ["role:worker"]
        assert {m["to"] for m in sent_mail} == {"ravi@example.com", "fatima@example.com"}

        # Apply: first worker wins, poster is told
        await job_service.apply_to_job(db, notifier, job.id, as_identity(first))
        row = load_job(job.id)
        assert row.status == "active"
        assert row.applied_by_id == first.id
        assert ("Job Application", "Applied by Ravi for Paint Wall", False) in notifications_for(poster)
        assert events[-1]["event"] == "job:applied"
        assert events[-1]["rooms"] == [f"user:{poster.id}"]
        assert sent_mail[-1]["to"] == "alice@example.com"

        # Second applicant is refused and nothing changes
        with pytest.raises(JobStateConflict, match="Job not available"):
            await job_service.apply_to_job(db, notifier, job.id, as_identity(second))
        assert load_job(job.id).applied_by_id == first.id

        # Complete: both parties are told
        completed = await job_service.complete_job(db, notifier, job.id, as_identity(first))
        assert completed.status == "completed"
        row = load_job(job.id)
        assert row.status == "completed"
        assert row.completed_at is not None
        assert ("Job Completed", "Job completed: Paint Wall", False) in notifications_for(poster)
        assert ("Job Completed", "Job completed: Paint Wall", False) in notifications_for(first)
        assert events[-1]["event"] == "job:completed"
        assert set(events[-1]["rooms"]) == {f"user:{poster.id}", f"user:{first.id}"}

        # Completing twice is a conflict
        with pytest.raises(JobStateConflict, match="Job already completed"):
            await job_service.complete_job(db, notifier, job.id, as_identity(poster))

        # Poster can still remove the finished job
        await job_service.delete_job(db, notifier, job.id, as_identity(poster))
        assert load_job(job.id) is None
        applications = [n for n in notifications_for(poster) if n[0] == "Job Application"]
        assert len(applications) == 1


class TestCreateAndUpdate:
    """Test posting and editing jobs."""

    async def test_create_without_workers_sends_nothing(self, db, make_user, as_identity, sent_mail, load_job):
        poster = make_user(role="user")
        job = await job_service.create_job(db, Notifier(db), as_identity(poster), _form(wage=45.5))
        row = load_job(job.id)
        assert row.wage == 45.5
        assert row.posted_by_id == poster.id
        assert row.applied_by_id is None
        assert sent_mail == []

    async def test_worker_cannot_create(self, db, make_user, as_identity):
        worker = make_user(role="worker")
        with pytest.raises(ForbiddenAction):
            await job_service.create_job(db, Notifier(db), as_identity(worker), _form())

    async def test_deadline_is_stored(self, db, make_user, as_identity):
        poster = make_user(role="user")
        job = await job_service.create_job(db, Notifier(db), as_identity(poster), _form(deadline="2030-05-01"))
        stored = await job_service.get_job(db, job.id)
        assert stored.deadline.date() == date(2030, 5, 1)

    async def test_update_keeps_status_and_worker(self, db, make_user, make_job, as_identity, load_job):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        job = make_job(poster, status="active", worker=worker)

        await job_service.update_job(db, job.id, as_identity(poster), _form(title="Paint Two Walls", wage=180))
        row = load_job(job.id)
        assert row.title == "Paint Two Walls"
        assert row.wage == 180
        assert row.status == "active"
        assert row.applied_by_id == worker.id

    async def test_only_owner_can_update(self, db, make_user, make_job, as_identity):
        owner = make_user(role="user")
        other = make_user(role="user")
        job = make_job(owner)
        with pytest.raises(ForbiddenAction):
            await job_service.update_job(db, job.id, as_identity(other), _form())


class TestApply:
    """Test claiming jobs."""

    async def test_apply_to_missing_job(self, db, make_user, as_identity):
        import uuid

        worker = make_user(role="worker")
        with pytest.raises(JobNotFound):
            await job_service.apply_to_job(db, Notifier(db), uuid.uuid4(), as_identity(worker))

    async def test_apply_to_completed_job_is_conflict(self, db, make_user, make_job, as_identity):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        job = make_job(poster, status="completed", worker=make_user(role="worker"))
        with pytest.raises(JobStateConflict):
            await job_service.apply_to_job(db, Notifier(db), job.id, as_identity(worker))

    async def test_notification_is_stored_before_event(
        self, db, make_user, make_job, as_identity, monkeypatch, notifications_for
    ):
        poster = make_user(role="user")
        worker = make_user(name="Ravi", role="worker")
        job = make_job(poster, title="Move Sofa")
        seen_at_publish = []

        async def _publish(event, payload, rooms):
            seen_at_publish.append(notifications_for(poster))

        monkeypatch.setattr("wageconnect.services.notifier.publish", _publish)
        await job_service.apply_to_job(db, Notifier(db), job.id, as_identity(worker))
        assert seen_at_publish == [[("Job Application", "Applied by Ravi for Move Sofa", False)]]

    async def test_poster_cannot_apply(self, db, make_user, make_job, as_identity):
        poster = make_user(role="user")
        job = make_job(poster)
        with pytest.raises(ForbiddenAction):
            await job_service.apply_to_job(db, Notifier(db), job.id, as_identity(poster))


class TestComplete:
    """Test who may complete a job."""

    async def test_poster_can_complete_open_job(
        self, db, make_user, make_job, as_identity, events, notifications_for, load_job
    ):
        poster = make_user(role="user")
        bystander = make_user(role="worker")
        job = make_job(poster, title="Fix Gate")

        await job_service.complete_job(db, Notifier(db), job.id, as_identity(poster))
        row = load_job(job.id)
        assert row.status == "completed"
        assert row.completed_at is not None
        assert row.applied_by_id is None
        assert notifications_for(poster) == [("Job Completed", "Job completed: Fix Gate", False)]
        assert notifications_for(bystander) == []
        assert events[-1]["event"] == "job:completed"
        assert events[-1]["rooms"] == [f"user:{poster.id}"]

    async def test_poster_can_complete_active_job(self, db, make_user, make_job, as_identity, load_job):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        job = make_job(poster, status="active", worker=worker)
        await job_service.complete_job(db, Notifier(db), job.id, as_identity(poster))
        assert load_job(job.id).status == "completed"

    async def test_unrelated_worker_is_forbidden(self, db, make_user, make_job, as_identity, load_job):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        stranger = make_user(role="worker")
        job = make_job(poster, status="active", worker=worker)
        with pytest.raises(ForbiddenAction):
            await job_service.complete_job(db, Notifier(db), job.id, as_identity(stranger))
        assert load_job(job.id).status == "active"

    async def test_worker_cannot_complete_open_job(self, db, make_user, make_job, as_identity):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        job = make_job(poster)
        with pytest.raises(ForbiddenAction):
            await job_service.complete_job(db, Notifier(db), job.id, as_identity(worker))

    async def test_other_poster_is_forbidden(self, db, make_user, make_job, as_identity):
        owner = make_user(role="user")
        other = make_user(role="user")
        job = make_job(owner, status="active", worker=make_user(role="worker"))
        with pytest.raises(ForbiddenAction):
            await job_service.complete_job(db, Notifier(db), job.id, as_identity(other))


class TestConcurrentApply:
    """A worker applying between a read and the guarded write."""

    @pytest.fixture
    def apply_during_read(self, monkeypatch, other_db, as_identity):
        """Make the next job read let a worker apply through another session."""

        def _arm(worker):
            original = job_service.get_job
            original_apply = job_service.apply_to_job
            state = {"armed": True}

            async def _get_job_then_apply(session, job_id, with_parties=False):
                job = await original(session, job_id, with_parties)
                if state["armed"]:
                    state["armed"] = False
                    await original_apply(other_db, Notifier(other_db), job_id, as_identity(worker))
                return job

            monkeypatch.setattr(job_service, "get_job", _get_job_then_apply)

        return _arm

    async def test_completion_is_refused_and_retry_tells_worker(
        self, db, make_user, make_job, as_identity, apply_during_read, notifications_for, load_job
    ):
        poster = make_user(role="user")
        worker = make_user(name="Ravi", role="worker")
        job = make_job(poster, title="Sweep Yard")
        apply_during_read(worker)

        with pytest.raises(JobStateConflict, match="please try again"):
            await job_service.complete_job(db, Notifier(db), job.id, as_identity(poster))
        row = load_job(job.id)
        assert row.status == "active"
        assert row.applied_by_id == worker.id
        assert row.completed_at is None

        await job_service.complete_job(db, Notifier(db), job.id, as_identity(poster))
        assert load_job(job.id).status == "completed"
        assert ("Job Completed", "Job completed: Sweep Yard", False) in notifications_for(worker)

    async def test_delete_is_refused_and_retry_tells_worker(
        self, db, make_user, make_job, as_identity, apply_during_read, events, notifications_for, load_job
    ):
        poster = make_user(role="user")
        worker = make_user(name="Ravi", role="worker")
        job = make_job(poster, title="Sweep Yard")
        apply_during_read(worker)

        with pytest.raises(JobStateConflict, match="please try again"):
            await job_service.delete_job(db, Notifier(db), job.id, as_identity(poster))
        assert load_job(job.id).applied_by_id == worker.id

        await job_service.delete_job(db, Notifier(db), job.id, as_identity(poster))
        assert load_job(job.id) is None
        assert ("Job Cancelled", "Job removed by poster: Sweep Yard", False) in notifications_for(worker)
        assert f"user:{worker.id}" in events[-1]["rooms"]


class TestDelete:
    """Test removing jobs."""

    async def test_delete_active_job_tells_worker(
        self, db, make_user, make_job, as_identity, events, notifications_for, load_job
    ):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        job = make_job(poster, title="Garden Cleanup", status="active", worker=worker)

        await job_service.delete_job(db, Notifier(db), job.id, as_identity(poster))
        assert load_job(job.id) is None
        assert ("Job Cancelled", "Job removed by poster: Garden Cleanup", False) in notifications_for(worker)
        assert events[-1]["event"] == "job:deleted"
        assert set(events[-1]["rooms"]) == {"role:worker", f"user:{worker.id}"}

    async def test_delete_open_job_has_no_cancellation_notice(
        self, db, make_user, make_job, as_identity, events, notifications_for
    ):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        job = make_job(poster)

        await job_service.delete_job(db, Notifier(db), job.id, as_identity(poster))
        assert notifications_for(worker) == []
        assert events[-1]["rooms"] == ["role:worker"]

    async def test_delete_by_other_poster_is_forbidden(self, db, make_user, make_job, as_identity, load_job):
        owner = make_user(role="user")
        other = make_user(role="user")
        job = make_job(owner)
        with pytest.raises(ForbiddenAction):
            await job_service.delete_job(db, Notifier(db), job.id, as_identity(other))
        assert load_job(job.id) is not None

    async def test_delete_missing_job(self, db, make_user, as_identity):
        import uuid

        poster = make_user(role="user")
        with pytest.raises(JobNotFound):
            await job_service.delete_job(db, Notifier(db), uuid.uuid4(), as_identity(poster))


class TestListing:
    """Test role-filtered lists and text search."""

    async def test_active_and_past_lists_by_role(self, db, make_user, make_job, as_identity):
        poster = make_user(role="user")
        worker = make_user(role="worker")
        open_job = make_job(poster, title="Open One")
        active_job = make_job(poster, title="Active One", status="active", worker=worker)
        done_job = make_job(poster, title="Done One", status="completed", worker=worker)

        poster_active = {j.id for j in await job_service.list_active_jobs(db, as_identity(poster))}
        assert poster_active == {open_job.id, active_job.id}

        worker_active = {j.id for j in await job_service.list_active_jobs(db, as_identity(worker))}
        assert worker_active == {active_job.id}

        for user in (poster, worker):
            past = {j.id for j in await job_service.list_past_jobs(db, as_identity(user))}
            assert past == {done_job.id}

    async def test_available_lists_open_jobs_only(self, db, make_user, make_job):
        poster = make_user(role="user")
        open_job = make_job(poster)
        make_job(poster, status="active", worker=make_user(role="worker"))
        available = await job_service.list_available_jobs(db)
        assert [j.id for j in available] == [open_job.id]

    async def test_search_matches_title_description_and_location(self, db, make_user, make_job):
        poster = make_user(role="user")
        by_title = make_job(poster, title="Roof Repair", description="x", location="Pune")
        by_description = make_job(poster, title="Helper", description="fix the ROOF tiles", location="Pune")
        by_location = make_job(poster, title="Cleaning", description="x", location="Roofton Street")
        make_job(poster, title="Painting", description="walls", location="Delhi")

        found = {j.id for j in await job_service.list_available_jobs(db, "roof")}
        assert found == {by_title.id, by_description.id, by_location.id}

    async def test_search_treats_wildcards_literally(self, db, make_user, make_job):
        poster = make_user(role="user")
        discounted = make_job(poster, title="50% off cleaning")
        make_job(poster, title="500 boxes to move")
        underscore = make_job(poster, title="move_boxes")
        make_job(poster, title="moveXboxes")

        assert [j.id for j in await job_service.list_available_jobs(db, "50%")] == [discounted.id]
        assert [j.id for j in await job_service.list_available_jobs(db, "move_")] == [underscore.id]

    def test_escape_like(self):
        assert job_service.escape_like(r"50%_a\b") == r"50\%\_a\\b"
