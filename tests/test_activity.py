from datetime import timedelta

from fleethub.models.models import ActivityLog, utcnow
from fleethub.services.activity import (
    create_activity_log,
    get_activity_logs,
    get_recent_activity_logs,
    record_activity,
)
from fleethub.services.notifications import (
    create_notification,
    get_unread_user_notifications,
    get_user_notifications,
    mark_notification_as_read,
)


class TestNotifications:
    def test_newest_first(self, db, make_user):
        user = make_user()
        older = create_notification(db, user.id, "Oil change", "Due in 7 days", "maintenance")
        newer = create_notification(db, user.id, "Brakes", "Due in 3 days", "maintenance")
        older.created_at = utcnow() - timedelta(hours=2)
        db.commit()
        assert [n.id for n in get_user_notifications(db, user.id)] == [newer.id, older.id]

    def test_mark_read_flips_only_target(self, db, make_user):
        user = make_user()
        first = create_notification(db, user.id, "A", "a", "maintenance")
        second = create_notification(db, user.id, "B", "b", "maintenance")
        assert mark_notification_as_read(db, first.id).is_read is True
        db.refresh(second)
        assert second.is_read is False
        assert [n.id for n in get_unread_user_notifications(db, user.id)] == [second.id]

    def test_mark_missing_returns_none(self, db):
        assert mark_notification_as_read(db, 404) is None

    def test_muted_user_gets_nothing(self, db, make_user):
        user = make_user(notification_enabled=False)
        assert create_notification(db, user.id, "A", "a", "maintenance") is None
        assert get_user_notifications(db, user.id) == []


class TestActivityLog:
    def test_newest_first_and_limit(self, db, make_user):
        user = make_user()
        now = utcnow()
        for i in range(5):
            create_activity_log(db, user.id, "part_added", f"Part {i}", timestamp=now - timedelta(minutes=5 - i))
        logs = get_activity_logs(db)
        assert [log.description for log in logs] == ["Part 4", "Part 3", "Part 2", "Part 1", "Part 0"]
        assert [log.description for log in get_recent_activity_logs(db, 2)] == ["Part 4", "Part 3"]

    def test_record_without_actor_is_skipped(self, db):
        assert record_activity(db, None, "part_added", "no actor") is None
        assert db.query(ActivityLog).count() == 0

    def test_record_failure_is_swallowed(self, db, make_user):
        # Unknown user violates the foreign key
        assert record_activity(db, 9999, "part_added", "orphan") is None
        user = make_user()
        assert record_activity(db, user.id, "part_added", "after failure") is not None
        assert db.query(ActivityLog).count() == 1
