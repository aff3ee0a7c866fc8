import json
import os
from datetime import timedelta

from jobboard.core.config import settings
from jobboard.models.job import Application
from jobboard.models.notification import Notification
from jobboard.services import applications as applications_service
from jobboard.services import policy

def _apply(client, job_id, headers, cover_letter="Please consider me.", files=None, answers=None):
    data = {"cover_letter": cover_letter}
    if answers is not None:
        data["screening_answers"] = json.dumps(answers)
    return client.post(f"/api/student/applications/{job_id}", data=data, files=files, headers=headers)

def _pdf(name="cv.pdf"):
    return {"resume": (name, b"%PDF-1.4 uploaded resume", "application/pdf")}

def test_apply_review_and_notify(client, make_employer, make_student, make_job, auth):
    employer = make_employer()
    student = make_student()
    job = make_job(employer)

    applied = _apply(client, job.id, auth(student))
    assert applied.status_code == 201
    application = applied.json()["data"]
    assert application["status"] == "pending"
    assert application["resume_path"] == student.student_profile.resume_path

    listing = client.get(f"/api/employer/jobs/{job.id}/applications", headers=auth(employer)).json()["data"]
    assert listing["total"] == 1
    assert listing["items"][0]["status"] == "pending"

    employer_inbox = client.get("/api/notifications", headers=auth(employer)).json()["data"]
    assert employer_inbox["items"][0]["type"] == "new_application"
    assert employer_inbox["items"][0]["message"] == f"{student.name} has applied for {job.title}"

    updated = client.put(
        f"/api/employer/applications/{application['id']}/status",
        json={"status": "shortlisted", "notes": "Strong candidate"},
        headers=auth(employer),
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["status"] == "shortlisted"
    assert updated.json()["data"]["reviewed_at"] is not None

    inbox = client.get("/api/notifications", params={"unread_only": "true"}, headers=auth(student)).json()["data"]
    assert inbox["total"] == 1
    notification = inbox["items"][0]
    assert notification["title"] == "Application Status Update"
    assert notification["message"] == f"Congratulations! You have been shortlisted for {job.title}"
    assert notification["data"] == {"job_id": job.id, "application_id": application["id"], "status": "shortlisted"}
    assert notification["is_read"] is False

def test_duplicate_application_is_rejected(client, db, make_employer, make_student, make_job, auth):
    student = make_student()
    job = make_job(make_employer())

    assert _apply(client, job.id, auth(student)).status_code == 201
    second = _apply(client, job.id, auth(student))

    assert second.status_code == 400
    assert second.json()["message"] == "You have already applied for this job"
    assert db.query(Application).filter(Application.job_id == job.id).count() == 1

def test_duplicate_caught_by_unique_constraint(client, db, monkeypatch, make_employer, make_student, make_job, auth):
    student = make_student()
    job = make_job(make_employer())
    assert _apply(client, job.id, auth(student)).status_code == 201

    # A concurrent submission passes the existence check before the first one commits
    monkeypatch.setattr(applications_service, "has_applied", lambda db, job_id, student_id: False)
    upload_dir = os.path.join(settings.UPLOAD_DIR, "application_resumes")
    before = set(os.listdir(upload_dir)) if os.path.isdir(upload_dir) else set()

    second = _apply(client, job.id, auth(student), files=_pdf())

    assert second.status_code == 400
    assert second.json()["message"] == applications_service.DUPLICATE_MESSAGE
    assert db.query(Application).filter(Application.job_id == job.id).count() == 1
    assert db.query(Notification).filter(Notification.type == "new_application").count() == 1
    assert set(os.listdir(upload_dir)) == before

def test_application_requires_a_resume(client, db, make_employer, make_student, make_job, auth):
    student = make_student(with_resume=False)
    job = make_job(make_employer())

    response = _apply(client, job.id, auth(student))

    assert response.status_code == 400
    assert response.json()["message"] == "Please upload a resume or add one to your profile"
    assert db.query(Application).count() == 0

def test_student_without_profile_can_apply_with_upload(client, make_user, make_employer, make_job, auth):
    student = make_user(role="alumni")
    job = make_job(make_employer())

    response = _apply(client, job.id, auth(student), files=_pdf())

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["resume_path"].startswith("application_resumes/")
    assert data["resume_url"] == f"http://testserver/storage/{data['resume_path']}"
    assert os.path.isfile(os.path.join(settings.UPLOAD_DIR, data["resume_path"]))

def test_resume_upload_validation(client, make_employer, make_student, make_job, auth):
    job = make_job(make_employer())
    files = {"resume": ("cv.exe", b"MZ binary", "application/octet-stream")}

    response = _apply(client, job.id, auth(make_student()), files=files)

    assert response.status_code == 422
    assert "resume" in response.json()["errors"]

def test_cover_letter_is_required(client, make_employer, make_student, make_job, auth):
    job = make_job(make_employer())

    response = _apply(client, job.id, auth(make_student()), cover_letter="   ")

    assert response.status_code == 422
    assert "cover_letter" in response.json()["errors"]

def test_cannot_apply_to_closed_or_missing_job(client, make_employer, make_student, make_job, auth):
    student = make_student()
    closed = make_job(make_employer(), status="closed")
    expired = make_job(make_employer(), application_deadline=policy.today() - timedelta(days=1))

    assert _apply(client, closed.id, auth(student)).status_code == 400
    expired_response = _apply(client, expired.id, auth(student))
    assert expired_response.status_code == 400
    assert expired_response.json()["message"] == "This job is no longer accepting applications"
    assert _apply(client, 999, auth(student)).status_code == 404

def test_employers_cannot_apply(client, make_employer, make_job, auth):
    job = make_job(make_employer())
    response = _apply(client, job.id, auth(make_employer()))
    assert response.status_code == 403

def test_screening_answers(client, make_employer, make_student, make_job, auth):
    job = make_job(make_employer(), questions=[
        {"question": "Are you eligible to work in Canada?", "question_type": "yes_no", "is_required": True, "order": 1},
        {"question": "Preferred team", "question_type": "multiple_choice", "is_required": False,
         "options": ["Platform", "Product"], "order": 2},
    ])
    required_id, choice_id = [q.id for q in job.screening_questions]
    student = make_student()

    missing = _apply(client, job.id, auth(student), answers={str(choice_id): "Platform"})
    assert missing.status_code == 422
    assert f"screening_answers.{required_id}" in missing.json()["errors"]

    malformed = client.post(
        f"/api/student/applications/{job.id}",
        data={"cover_letter": "Hi", "screening_answers": "[1, 2]"},
        headers=auth(student),
    )
    assert malformed.status_code == 422
    assert "screening_answers" in malformed.json()["errors"]

    accepted = _apply(client, job.id, auth(student), answers={str(required_id): "yes", str(choice_id): "Product"})
    assert accepted.status_code == 201
    assert accepted.json()["data"]["screening_answers"] == {str(required_id): "yes", str(choice_id): "Product"}

def test_my_applications(client, make_employer, make_student, make_job, make_application, auth):
    student = make_student()
    employer = make_employer()
    make_application(make_job(employer, title="First"), student)
    make_application(make_job(employer, title="Second"), student)
    make_application(make_job(employer, title="Not Mine"), make_student())

    data = client.get("/api/student/applications", headers=auth(student)).json()["data"]

    assert data["total"] == 2
    assert {item["job"]["title"] for item in data["items"]} == {"First", "Second"}

def test_application_visibility(client, make_employer, make_student, make_job, make_application, auth):
    owner = make_employer()
    student = make_student()
    application = make_application(make_job(owner), student)

    assert client.get(f"/api/student/applications/{application.id}", headers=auth(student)).status_code == 200
    assert client.get(f"/api/employer/applications/{application.id}", headers=auth(owner)).status_code == 200
    assert client.get(f"/api/student/applications/{application.id}", headers=auth(make_student())).status_code == 404
    assert client.get(f"/api/employer/applications/{application.id}", headers=auth(make_employer())).status_code == 404

    other_status = client.put(
        f"/api/employer/applications/{application.id}/status",
        json={"status": "reviewed"},
        headers=auth(make_employer()),
    )
    assert other_status.status_code == 404

def test_status_update_rules(client, db, make_employer, make_student, make_job, make_application, auth):
    employer = make_employer()
    student = make_student()
    application = make_application(make_job(employer), student)
    url = f"/api/employer/applications/{application.id}/status"

    invalid = client.put(url, json={"status": "hired"}, headers=auth(employer))
    assert invalid.status_code == 422
    assert "status" in invalid.json()["errors"]

    to_pending = client.put(url, json={"status": "pending"}, headers=auth(employer))
    assert to_pending.status_code == 200
    assert db.query(Notification).filter(Notification.user_id == student.id).count() == 0

    reviewed = client.put(url, json={"status": "reviewed"}, headers=auth(employer))
    assert reviewed.status_code == 200
    assert db.query(Notification).filter(Notification.user_id == student.id).count() == 1

    again = client.put(url, json={"status": "shortlisted"}, headers=auth(employer))
    assert again.status_code == 400
    assert db.query(Notification).filter(Notification.user_id == student.id).count() == 1

def test_withdraw_pending_application(client, db, make_employer, make_student, make_job, make_application, auth):
    student = make_student()
    application = make_application(make_job(make_employer()), student)
    application_id = application.id

    response = client.delete(f"/api/student/applications/{application_id}/withdraw", headers=auth(student))

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Application, application_id) is None

def test_cannot_withdraw_reviewed_application(client, db, make_employer, make_student, make_job, make_application, auth):
    student = make_student()
    application = make_application(make_job(make_employer()), student, status="reviewed")

    response = client.delete(f"/api/student/applications/{application.id}/withdraw", headers=auth(student))

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot withdraw application that has been reviewed"
    db.expire_all()
    assert db.get(Application, application.id).status == "reviewed"

def test_employer_cannot_withdraw(client, make_employer, make_student, make_job, make_application, auth):
    owner = make_employer()
    application = make_application(make_job(owner), make_student())

    response = client.delete(f"/api/student/applications/{application.id}/withdraw", headers=auth(owner))
    assert response.status_code == 403
