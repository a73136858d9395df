from __future__ import annotations

from universe.models.membership_finalization import MembershipFinalization
from universe.services.payment_confirmation import finalization_report


def _user(user_id: int, role: str) -> dict:
    return {"id": user_id, "email": f"user{user_id}@example.com", "firstName": "User", "lastName": str(user_id), "role": role}


def test_list_users_with_role_filter(client, authorize, super_admin_user, fake_backend):
    authorize(super_admin_user)
    fake_backend.on("GET", "/admin/users", {"success": True, "users": [_user(7, "STUDENT"), _user(20, "CLUB_ADMIN")]})
    fake_backend.on("GET", "/admin/users/role/CLUB_ADMIN", {"success": True, "users": [_user(20, "CLUB_ADMIN")]})

    everyone = client.get("/admin/users")
    admins = client.get("/admin/users", params={"role": "CLUB_ADMIN"})

    assert len(everyone.json()) == 2
    assert [user["id"] for user in admins.json()] == [20]
    assert client.get("/admin/users", params={"role": "JANITOR"}).status_code == 422


def test_create_club_admin(client, authorize, super_admin_user, fake_backend):
    authorize(super_admin_user)
    fake_backend.on("POST", "/admin/club-admins", {"success": True, "user": _user(21, "CLUB_ADMIN")})

    response = client.post(
        "/admin/club-admins",
        json={"email": "sahan@example.com", "password": "secret1", "first_name": "Sahan", "last_name": "Silva"},
    )

    assert response.status_code == 201, response.text
    (call,) = fake_backend.calls_to("POST", "/admin/club-admins")
    assert call["json"]["role"] == "CLUB_ADMIN"
    assert call["json"]["lastName"] == "Silva"


def test_update_and_delete_user(client, authorize, super_admin_user, fake_backend):
    authorize(super_admin_user)
    fake_backend.on("PUT", "/admin/users/7", {"success": True, "user": _user(7, "CLUB_ADMIN")})
    fake_backend.on("DELETE", "/admin/users/7", {"success": True, "message": "User deleted"})

    updated = client.put("/admin/users/7", json={"role": "CLUB_ADMIN"})
    deleted = client.delete("/admin/users/7")

    assert updated.json()["role"] == "CLUB_ADMIN"
    assert fake_backend.calls_to("PUT", "/admin/users/7")[0]["json"] == {"role": "CLUB_ADMIN"}
    assert deleted.status_code == 204


def test_failed_finalizations_report(client, authorize, super_admin_user, db_session):
    authorize(super_admin_user)
    db_session.add_all(
        [
            MembershipFinalization(payment_id=101, user_id=7, club_id=3, status="failed", message="Club is full"),
            MembershipFinalization(payment_id=102, user_id=8, club_id=3, status="completed", membership_id=5),
        ]
    )
    db_session.commit()

    failed = client.get("/admin/finalizations", params={"status": "failed"})
    everything = client.get("/admin/finalizations")

    assert failed.status_code == 200, failed.text
    assert [(row["payment_id"], row["message"]) for row in failed.json()] == [(101, "Club is full")]
    assert len(everything.json()) == 2


def test_announcement_workflow(client, authorize, club_admin_user, fake_backend):
    authorize(club_admin_user)
    announcement = {"id": 4, "title": "AGM", "content": "Annual meeting", "clubId": 3, "createdBy": 20, "isPublished": False}
    fake_backend.on("POST", "/announcements", {"success": True, "announcement": announcement})
    fake_backend.on("POST", "/announcements/4/publish", {"success": True, "announcement": {**announcement, "isPublished": True}})

    created = client.post("/announcements", json={"title": " AGM ", "content": "Annual meeting", "clubId": 3})
    published = client.post("/announcements/4/publish")

    assert created.status_code == 201, created.text
    sent = fake_backend.calls_to("POST", "/announcements")[0]["json"]
    assert sent == {"title": "AGM", "content": "Annual meeting", "clubId": 3, "createdBy": 20}
    assert published.json()["isPublished"] is True


def test_students_only_see_published_announcements(client, authorize, student_user, fake_backend):
    authorize(student_user)
    fake_backend.on("GET", "/announcements/club/3", {"success": True, "announcements": []})

    assert client.get("/announcements/club/3").status_code == 200
    assert client.get("/announcements/club/3/all").status_code == 403


def test_club_admin_manages_events(client, authorize, club_admin_user, fake_backend):
    authorize(club_admin_user)
    fake_backend.on(
        "POST",
        "/events",
        {"success": True, "event": {"id": 11, "title": "Photo walk", "clubId": 3, "eventDate": "2026-11-01T09:00:00"}},
    )

    response = client.post(
        "/events",
        json={"title": "Photo walk", "eventDate": "2026-11-01T09:00:00", "clubId": 3, "location": "Galle Face"},
    )

    assert response.status_code == 201, response.text
    assert fake_backend.calls_to("POST", "/events")[0]["json"]["location"] == "Galle Face"


def test_upload_rejects_non_images(client, authorize, club_admin_user, fake_backend):
    authorize(club_admin_user)

    response = client.post("/uploads/image", files={"file": ("notes.txt", b"hello", "text/plain")})

    assert response.status_code == 400
    assert fake_backend.calls == []


def test_upload_forwards_image(client, authorize, club_admin_user, fake_backend):
    authorize(club_admin_user)
    fake_backend.on("POST", "/upload/image", {"fileName": "logo.png", "filePath": "/uploads/logo.png"})

    response = client.post("/uploads/image", files={"file": ("logo.png", b"\x89PNG", "image/png")})

    assert response.status_code == 200, response.text
    assert response.json()["filePath"] == "/uploads/logo.png"
    assert len(fake_backend.calls_to("POST", "/upload/image")) == 1


def test_finalization_report_lists_paid_but_unregistered(db_session):
    db_session.add_all(
        [
            MembershipFinalization(payment_id=201, user_id=7, club_id=3, status="failed"),
            MembershipFinalization(payment_id=202, user_id=7, club_id=4, status="no_draft"),
        ]
    )
    db_session.commit()

    assert finalization_report(db_session) == [201]
