import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.campaign import AcceptanceStatus, AssignedInfluencer, CompletionStatus
from app.schemas.deliverable import DeliverableIn
from app.services.deliverable_service import DeliverableService, extract_post_count, required_post_count
from tests.factories import add_assignment


def deliverable(n=1, **overrides):
    data = {
        "platform": "Instagram",
        "url": f"https://instagram.com/p/post{n}",
        "description": f"Post number {n}",
    }
    data.update(overrides)
    return DeliverableIn(**data)


@pytest.mark.unit
class TestExtractPostCount:
    """Parsing the required number of posts from free text."""

    @pytest.mark.parametrize("text, expected", [
        ("3 times per week for 4 weeks = 12 posts in total", 12),
        ("10 posts total", 10),
        ("2 times per week for 3 weeks", 6),
        ("4 posts per week", 4),
        ("2 posts per day", 2),
        ("5 posts", 5),
        ("1 post", 1),
        ("5 POSTS IN TOTAL", 5),
    ])
    def test_parses_known_patterns(self, text, expected):
        assert extract_post_count(text) == expected

    def test_total_wins_over_weekly_pattern(self):
        assert extract_post_count("1 time per week for 2 weeks = 7 posts in total") == 7

    @pytest.mark.parametrize("text", ["random text", "", None, "weekly"])
    def test_unparseable_defaults_to_one(self, text):
        assert extract_post_count(text) == 1

    def test_explicit_post_count_takes_precedence(self, sample_campaign):
        sample_campaign.post_count = 4
        sample_campaign.post_frequency = "10 posts in total"
        assert required_post_count(sample_campaign) == 4

    def test_falls_back_to_frequency(self, sample_campaign):
        sample_campaign.post_count = 0
        sample_campaign.post_frequency = "2 times per week for 2 weeks"
        assert required_post_count(sample_campaign) == 4


@pytest.mark.db
class TestSubmitDeliverables:
    """Deliverable submission against an accepted assignment (3 posts required)."""

    def test_partial_then_complete(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        first = DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(1), deliverable(2)]
        )
        assert first.is_completed == CompletionStatus.IN_PROGRESS
        assert first.total_submitted == 2
        assert first.remaining_posts == 1

        second = DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(3)]
        )
        assert second.is_completed == CompletionStatus.COMPLETED
        assert second.remaining_posts == 0

        assignment = db_session.query(AssignedInfluencer).one()
        assert assignment.completed_at is not None
        assert len(assignment.submitted_jobs) == 3
        assert assignment.submitted_count == 3

    def test_submission_notifies_brand_and_admin(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        DeliverableService.submit(db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(1)])

        assert [w["to"] for w in notifier.whatsapps] == [sample_campaign.brand_phone]
        recipients = {e["to"] for e in notifier.emails}
        assert sample_campaign.email in recipients
        assert notifier.admin_email in recipients

    def test_rejects_when_already_complete_without_mutation(
        self, db_session: Session, notifier, sample_campaign, sample_influencer
    ):
        add_assignment(db_session, sample_campaign, sample_influencer)
        DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id,
            [deliverable(1), deliverable(2), deliverable(3)],
        )

        with pytest.raises(ValidationError):
            DeliverableService.submit(db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(4)])

        db_session.expire_all()
        assignment = db_session.query(AssignedInfluencer).one()
        assert assignment.submitted_count == 3
        assert len(assignment.submitted_jobs) == 3

    def test_rejects_overshooting_batch_without_mutation(
        self, db_session: Session, notifier, sample_campaign, sample_influencer
    ):
        add_assignment(db_session, sample_campaign, sample_influencer)
        DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(1), deliverable(2)]
        )

        with pytest.raises(ValidationError) as exc_info:
            DeliverableService.submit(
                db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(3), deliverable(4)]
            )
        assert exc_info.value.data["remainingPosts"] == 1

        db_session.expire_all()
        assignment = db_session.query(AssignedInfluencer).one()
        assert assignment.submitted_count == 2
        assert assignment.is_completed == CompletionStatus.IN_PROGRESS

    def test_requires_accepted_assignment(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer, acceptance=AcceptanceStatus.PENDING)

        with pytest.raises(NotFoundError):
            DeliverableService.submit(db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(1)])

    def test_missing_fields_reports_position(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        with pytest.raises(ValidationError) as exc_info:
            DeliverableService.submit(
                db_session, notifier, sample_campaign.id, sample_influencer.id,
                [deliverable(1), deliverable(2, description="")],
            )
        assert exc_info.value.message == (
            "Deliverable 2 is missing required fields (platform, url, description)."
        )

    def test_invalid_url_reports_position(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        with pytest.raises(ValidationError) as exc_info:
            DeliverableService.submit(
                db_session, notifier, sample_campaign.id, sample_influencer.id, [deliverable(1, url="ftp://x")]
            )
        assert exc_info.value.message == "Invalid URL format in deliverable 1."

    def test_empty_batch(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        with pytest.raises(ValidationError) as exc_info:
            DeliverableService.submit(db_session, notifier, sample_campaign.id, sample_influencer.id, [])
        assert exc_info.value.message == "At least one deliverable is required."


@pytest.mark.db
class TestUpdateSubmitted:

    def test_replaces_jobs_of_completed_assignment(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)
        DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id,
            [deliverable(1), deliverable(2), deliverable(3)],
        )

        result = DeliverableService.update_submitted(
            db_session, sample_campaign.id, sample_influencer.id,
            [deliverable(7), deliverable(8), deliverable(9)],
        )

        assert result.updated_jobs == 3
        assignment = db_session.query(AssignedInfluencer).one()
        assert sorted(job.url for job in assignment.submitted_jobs) == [
            "https://instagram.com/p/post7", "https://instagram.com/p/post8", "https://instagram.com/p/post9",
        ]

    def test_requires_completed_assignment(self, db_session: Session, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        with pytest.raises(NotFoundError):
            DeliverableService.update_submitted(
                db_session, sample_campaign.id, sample_influencer.id,
                [deliverable(1), deliverable(2), deliverable(3)],
            )

    def test_batch_must_match_required_count(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)
        DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id,
            [deliverable(1), deliverable(2), deliverable(3)],
        )

        with pytest.raises(ValidationError) as exc_info:
            DeliverableService.update_submitted(db_session, sample_campaign.id, sample_influencer.id, [deliverable(1)])
        assert "requires exactly 3 posts" in exc_info.value.message


@pytest.mark.db
class TestStash:
    """Drafts are kept apart from submitted jobs."""

    def test_stash_is_not_counted(self, db_session: Session, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        created = DeliverableService.stash(
            db_session, sample_campaign.id, sample_influencer.id, [deliverable(1), deliverable(2)]
        )

        assert len(created) == 2
        assert all(entry.id for entry in created)
        status = DeliverableService.status(db_session, sample_campaign.id, sample_influencer.id)
        assert status.submitted_posts == 0
        assert status.remaining_posts == 3

    def test_get_and_delete_one(self, db_session: Session, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)
        first, second = DeliverableService.stash(
            db_session, sample_campaign.id, sample_influencer.id, [deliverable(1), deliverable(2)]
        )
        first_id, second_id = first.id, second.id

        fetched = DeliverableService.get_stash(db_session, sample_campaign.id, sample_influencer.id, second_id)
        assert fetched.url == "https://instagram.com/p/post2"

        DeliverableService.delete_stash(db_session, sample_campaign.id, sample_influencer.id, first_id)
        remaining = DeliverableService.list_stash(db_session, sample_campaign.id, sample_influencer.id)
        assert [entry.id for entry in remaining] == [second_id]

    def test_clear_stash(self, db_session: Session, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)
        DeliverableService.stash(db_session, sample_campaign.id, sample_influencer.id, [deliverable(1), deliverable(2)])

        assert DeliverableService.clear_stash(db_session, sample_campaign.id, sample_influencer.id) == 2
        assert DeliverableService.list_stash(db_session, sample_campaign.id, sample_influencer.id) == []

    def test_unknown_stash_id(self, db_session: Session, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)

        with pytest.raises(NotFoundError):
            DeliverableService.get_stash(
                db_session, sample_campaign.id, sample_influencer.id, "8d0e2a38-2d43-4a86-9a5c-5f5b1b3d2e10"
            )

    def test_not_allowed_after_completion(self, db_session: Session, notifier, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer)
        DeliverableService.submit(
            db_session, notifier, sample_campaign.id, sample_influencer.id,
            [deliverable(1), deliverable(2), deliverable(3)],
        )

        with pytest.raises(ValidationError):
            DeliverableService.stash(db_session, sample_campaign.id, sample_influencer.id, [deliverable(4)])

    def test_requires_accepted_assignment(self, db_session: Session, sample_campaign, sample_influencer):
        add_assignment(db_session, sample_campaign, sample_influencer, acceptance=AcceptanceStatus.DECLINED)

        with pytest.raises(NotFoundError):
            DeliverableService.stash(db_session, sample_campaign.id, sample_influencer.id, [deliverable(1)])
