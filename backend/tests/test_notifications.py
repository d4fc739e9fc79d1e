"""Test in-app notifications: listing, unread badge, mark-all-read."""


class TestNotificationRoutes:
    """Test the notification endpoints."""

    def test_list_shows_only_own_notifications(self, client, make_user, auth_headers, add_notifications):
        me = make_user(role="worker")
        other = make_user(role="worker")
        add_notifications(me, "New job posted: Paint Wall")
        add_notifications(other, "New job posted: Secret Job")

        response = client.get("/notifications", headers=auth_headers(me))
        assert response.status_code == 200
        assert "Paint Wall" in response.text
        assert "Secret Job" not in response.text

    def test_unread_count(self, client, make_user, auth_headers, add_notifications):
        me = make_user(role="worker")
        add_notifications(me, "one", "two")
        add_notifications(me, "old", is_read=True)

        response = client.get("/notifications/unread-count", headers=auth_headers(me))
        assert response.json() == {"unread": 2}

    def test_mark_all_read(self, client, make_user, auth_headers, add_notifications, notifications_for):
        me = make_user(role="user")
        other = make_user(role="user")
        add_notifications(me, "one", "two")
        add_notifications(other, "untouched")

        response = client.post("/notifications/read", headers=auth_headers(me))
        assert response.status_code == 303
        assert response.headers["location"] == "/notifications?read=1"

        assert all(is_read for _, _, is_read in notifications_for(me))
        assert notifications_for(other) == [("New Job", "untouched", False)]
        assert client.get("/notifications/unread-count", headers=auth_headers(me)).json() == {"unread": 0}

    def test_badge_rendered_in_layout(self, client, make_user, auth_headers, add_notifications):
        me = make_user(role="worker")
        add_notifications(me, "one", "two", "three")
        response = client.get("/jobs/available", headers=auth_headers(me))
        assert 'id="unread-badge" class="badge">3<' in response.text


class TestNotificationService:
    """Test notification queries directly."""

    async def test_list_newest_first_with_limit(self, db, make_user, add_notifications):
        from wageconnect.services.notification_service import list_notifications, mark_all_read, unread_count

        me = make_user(role="worker")
        add_notifications(me, "a", "b", "c")

        assert len(await list_notifications(db, me.id, limit=2)) == 2
        assert await unread_count(db, me.id) == 3
        assert await mark_all_read(db, me.id) == 3
        assert await mark_all_read(db, me.id) == 0
        assert await unread_count(db, me.id) == 0
