import uuid

import pytest
from sqlalchemy.exc import OperationalError

from quizhub.exceptions import ForbiddenError, InternalError, InvalidInputError, NotApprovedError, NotFoundError
from quizhub.models import Answer, Attempt, EducatorStatus, Enrollment, Quiz, Role, User
from quizhub.services.attempt_service import attempt_service
from quizhub.services.quiz_service import quiz_service
from quizhub.services.user_service import user_service
from tests.conftest import CAPITALS, auth_headers, identity_for, questions_of


@pytest.fixture
def pending(make_user):
    return make_user(Role.EDUCATOR, status=EducatorStatus.PENDING, name="Pending Educator")


def submit(db, student, quiz, answers=()):
    attempt = attempt_service.start_attempt(db, identity_for(student), quiz.id)
    return attempt_service.submit_attempt(db, identity_for(student), attempt.id, quiz.id, list(answers))


class TestApproval:
    def test_pending_list(self, client, admin, pending, educator):
        response = client.get("/api/admin/educators/pending", headers=auth_headers(admin))

        assert response.status_code == 200
        assert [user["id"] for user in response.json()] == [str(pending.id)]

    def test_approve_unlocks_quiz_creation(self, client, admin, pending):
        blocked = client.post("/api/quizzes", json={"title": "Early"}, headers=auth_headers(pending))
        assert blocked.json()["error"] == "not_approved"

        response = client.patch(
            f"/api/admin/educators/{pending.id}/status",
            json={"status": "APPROVED"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["educatorStatus"] == "APPROVED"
        # Same token as before: status is read from the store on each request
        created = client.post("/api/quizzes", json={"title": "Now allowed"}, headers=auth_headers(pending))
        assert created.status_code == 201

    def test_reject(self, db, admin, pending):
        user_service.set_educator_status(db, identity_for(admin), pending.id, EducatorStatus.REJECTED)

        with pytest.raises(NotApprovedError):
            quiz_service.get_educator_stats(db, identity_for(pending))

    def test_status_must_be_a_decision(self, client, db, admin, pending):
        response = client.patch(
            f"/api/admin/educators/{pending.id}/status",
            json={"status": "PENDING"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 422

        with pytest.raises(InvalidInputError):
            user_service.set_educator_status(db, identity_for(admin), pending.id, EducatorStatus.PENDING)

    def test_only_admins_decide(self, client, educator, pending):
        response = client.patch(
            f"/api/admin/educators/{pending.id}/status",
            json={"status": "APPROVED"},
            headers=auth_headers(educator),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_non_educator_is_not_found(self, db, admin, student):
        with pytest.raises(NotFoundError):
            user_service.set_educator_status(db, identity_for(admin), student.id, EducatorStatus.APPROVED)

    def test_failed_decision_is_rolled_back(self, db, admin, pending, monkeypatch):
        pending_id = pending.id

        def commit():
            raise OperationalError("UPDATE users", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", commit)

        with pytest.raises(InternalError):
            user_service.set_educator_status(db, identity_for(admin), pending_id, EducatorStatus.APPROVED)

        monkeypatch.undo()
        db.expire_all()
        assert db.get(User, pending_id).educator_status == EducatorStatus.PENDING.value


class TestUsers:
    def test_list_users(self, client, admin, student, educator):
        response = client.get("/api/admin/users", headers=auth_headers(admin))

        assert response.status_code == 200
        assert {user["id"] for user in response.json()} == {str(admin.id), str(student.id), str(educator.id)}
        assert all("passwordHash" not in user for user in response.json())

    def test_list_users_admin_only(self, db, student):
        with pytest.raises(ForbiddenError):
            user_service.list_users(db, identity_for(student))

    def test_promote_to_educator_starts_pending(self, client, admin, student):
        response = client.patch(f"/api/admin/users/{student.id}", json={"role": "EDUCATOR"}, headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json()["role"] == "EDUCATOR"
        assert response.json()["educatorStatus"] == "PENDING"

    def test_demote_clears_status(self, db, admin, educator):
        user = user_service.update_role(db, identity_for(admin), educator.id, Role.STUDENT)

        assert user.role == "STUDENT"
        assert user.educator_status is None

    def test_cannot_demote_self(self, db, admin):
        with pytest.raises(InvalidInputError):
            user_service.update_role(db, identity_for(admin), admin.id, Role.STUDENT)

    def test_failed_role_change_is_rolled_back(self, db, admin, student, monkeypatch):
        student_id = student.id

        def commit():
            raise OperationalError("UPDATE users", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "commit", commit)

        with pytest.raises(InternalError):
            user_service.update_role(db, identity_for(admin), student_id, Role.EDUCATOR)

        monkeypatch.undo()
        db.expire_all()
        changed = db.get(User, student_id)
        assert (changed.role, changed.educator_status) == (Role.STUDENT.value, None)

    def test_unknown_role_rejected(self, client, admin, student):
        response = client.patch(f"/api/admin/users/{student.id}", json={"role": "SUPERUSER"}, headers=auth_headers(admin))

        assert response.status_code == 422

    def test_missing_user(self, client, admin):
        response = client.delete(f"/api/admin/users/{uuid.uuid4()}", headers=auth_headers(admin))

        assert response.status_code == 404

    def test_cannot_delete_self(self, client, admin):
        response = client.delete(f"/api/admin/users/{admin.id}", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_delete_student_removes_their_records(self, client, db, admin, student, capitals_quiz, enroll, make_user):
        classmate = make_user(Role.STUDENT)
        for user in (student, classmate):
            enroll(user, capitals_quiz)
            submit(db, user, capitals_quiz)

        student_id = student.id

        response = client.delete(f"/api/admin/users/{student_id}", headers=auth_headers(admin))

        assert response.status_code == 200
        db.expire_all()
        assert db.get(User, student_id) is None
        assert db.query(Enrollment).filter(Enrollment.user_id == student_id).count() == 0
        assert db.query(Attempt).filter(Attempt.user_id == student_id).count() == 0
        assert db.query(Attempt).filter(Attempt.user_id == classmate.id).count() == 1
        assert db.query(Answer).count() == 2
        assert db.get(Quiz, capitals_quiz.id) is not None

    def test_delete_educator_removes_their_quizzes(self, db, admin, educator, student, capitals_quiz, enroll):
        enroll(student, capitals_quiz)
        paris = questions_of(db, capitals_quiz)[0]
        submit(db, student, capitals_quiz, [{"question_id": str(paris.id), "answer": "Paris"}])

        counts = user_service.delete_user(db, identity_for(admin), educator.id)

        assert counts == {"answers": 2, "attempts": 1, "enrollments": 1, "questions": 2, "quizzes": 1, "users": 1}
        assert db.query(Quiz).count() == 0
        assert db.query(Answer).count() == 0
        assert db.get(User, student.id) is not None

    def test_deleted_users_token_stops_working(self, client, db, admin, student):
        headers = auth_headers(student)
        user_service.delete_user(db, identity_for(admin), student.id)

        response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401


class TestEducatorStats:
    def test_stats(self, client, db, educator, make_quiz, student, enroll, make_user):
        quiz = make_quiz(educator, CAPITALS)
        make_quiz(educator, title="Empty")
        make_quiz(make_user(Role.EDUCATOR), CAPITALS, title="Not mine")
        enroll(student, quiz)
        paris, seine = questions_of(db, quiz)
        submit(db, student, quiz, [
            {"question_id": str(paris.id), "answer": "Paris"},
            {"question_id": str(seine.id), "answer": "False"},
        ])
        submit(db, student, quiz)
        attempt_service.start_attempt(db, identity_for(student), quiz.id)

        response = client.get("/api/educator/stats", headers=auth_headers(educator))

        assert response.status_code == 200
        assert response.json() == {
            "totalQuizzes": 2,
            "totalEnrollments": 1,
            "totalAttempts": 3,
            "averagePercentage": 50.0,
        }

    def test_pending_educator_gets_not_approved(self, client, pending):
        response = client.get("/api/educator/stats", headers=auth_headers(pending))

        assert response.status_code == 403
        assert response.json()["error"] == "not_approved"

    def test_students_forbidden(self, db, student):
        with pytest.raises(ForbiddenError):
            quiz_service.get_educator_stats(db, identity_for(student))

    def test_no_attempts_yet(self, db, educator):
        stats = quiz_service.get_educator_stats(db, identity_for(educator))

        assert stats == {"total_quizzes": 0, "total_enrollments": 0, "total_attempts": 0, "average_percentage": 0.0}


class TestBootstrapAdmin:
    def test_ensure_admin_is_idempotent(self, db):
        admin, created = user_service.ensure_admin(db, "Root@Example.com", "rootpass")
        again, created_again = user_service.ensure_admin(db, "root@example.com", "other")

        assert created is True
        assert created_again is False
        assert again.id == admin.id
        assert admin.role == "ADMIN"
        assert admin.email == "root@example.com"
