import os

from jobboard.core.config import settings
from jobboard.core.storage import delete_file, file_exists, public_url, store_file
from jobboard.models.user import StudentProfile

STUDENT_PROFILE = {
    "program": "Computer Science",
    "faculty": "Science",
    "graduation_year": 2026,
    "gpa": 3.6,
    "skills": ["Python", "FastAPI"],
    "linkedin_url": "https://www.linkedin.com/in/jane",
    "available_from": "2026-05-01",
}

EMPLOYER_PROFILE = {
    "company_name": "North Atlantic Software",
    "company_description": "Fleet tracking for ocean industries.",
    "industry": "Technology",
    "contact_person": "Hannah Reid",
    "contact_email": "careers@northatlantic.ca",
    "location": "St. John's, NL",
    "founded_year": 2008,
}

def test_student_profile_create_and_update(client, db, make_user, auth):
    student = make_user(role="student")
    headers = auth(student)

    assert client.get("/api/student/profile", headers=headers).status_code == 404

    created = client.post("/api/student/profile", json=STUDENT_PROFILE, headers=headers)
    assert created.status_code == 200
    assert created.json()["data"]["skills"] == ["Python", "FastAPI"]

    updated = client.post("/api/student/profile", json={**STUDENT_PROFILE, "program": "Data Science"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["program"] == "Data Science"
    assert updated.json()["data"]["id"] == created.json()["data"]["id"]

    assert db.query(StudentProfile).filter(StudentProfile.user_id == student.id).count() == 1
    assert client.get("/api/student/profile", headers=headers).json()["data"]["program"] == "Data Science"

def test_student_profile_validation(client, make_user, auth):
    headers = auth(make_user(role="student"))

    response = client.post("/api/student/profile", headers=headers, json={
        **STUDENT_PROFILE, "gpa": 4.5, "graduation_year": 1999, "skills": ["x" * 51],
    })

    assert response.status_code == 422
    assert {"gpa", "graduation_year", "skills"} <= set(response.json()["errors"])

def test_profile_type_must_match_role(client, make_user, auth):
    employer = make_user(role="employer")
    student = make_user(role="student")

    assert client.post("/api/student/profile", json=STUDENT_PROFILE, headers=auth(employer)).status_code == 403
    assert client.post("/api/employer/profile", json=EMPLOYER_PROFILE, headers=auth(student)).status_code == 403

def test_employer_profile(client, make_user, auth):
    employer = make_user(role="employer")
    headers = auth(employer)

    response = client.post("/api/employer/profile", json=EMPLOYER_PROFILE, headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["company_name"] == "North Atlantic Software"
    assert response.json()["data"]["logo_url"] is None
    assert client.get("/api/employer/profile", headers=headers).json()["data"]["founded_year"] == 2008

def test_employer_profile_validation(client, make_user, auth):
    headers = auth(make_user(role="employer"))

    response = client.post("/api/employer/profile", headers=headers, json={
        **EMPLOYER_PROFILE, "founded_year": 3000, "contact_email": "not-an-email", "company_description": "x" * 2001,
    })

    assert response.status_code == 422
    assert {"founded_year", "contact_email", "company_description"} <= set(response.json()["errors"])

def test_resume_upload_needs_profile(client, make_user, auth):
    response = client.post(
        "/api/student/profile/resume",
        files={"resume": ("cv.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth(make_user(role="student")),
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Please create your profile first"

def test_resume_replace_and_delete(client, db, make_student, auth):
    student = make_student()
    headers = auth(student)
    old_path = student.student_profile.resume_path

    uploaded = client.post(
        "/api/student/profile/resume",
        files={"resume": ("new-cv.docx", b"PK docx body", "application/octet-stream")},
        headers=headers,
    )
    assert uploaded.status_code == 200
    new_path = uploaded.json()["data"]["resume_path"]
    assert new_path.startswith("resumes/") and new_path.endswith(".docx")
    assert file_exists(new_path)
    assert not file_exists(old_path)

    deleted = client.delete("/api/student/profile/resume", headers=headers)
    assert deleted.status_code == 200
    assert not file_exists(new_path)

    db.expire_all()
    assert db.query(StudentProfile).filter(StudentProfile.user_id == student.id).one().resume_path is None
    assert client.delete("/api/student/profile/resume", headers=headers).status_code == 404

def test_resume_used_by_an_application_is_kept(client, make_student, make_employer, make_job, make_application, auth):
    student = make_student()
    old_path = student.student_profile.resume_path
    make_application(make_job(make_employer()), student)

    client.post(
        "/api/student/profile/resume",
        files={"resume": ("cv.pdf", b"%PDF-1.4 v2", "application/pdf")},
        headers=auth(student),
    )

    assert file_exists(old_path)

def test_resume_type_and_size_limits(client, make_student, auth):
    headers = auth(make_student())

    wrong_type = client.post(
        "/api/student/profile/resume",
        files={"resume": ("cv.txt", b"plain text", "text/plain")},
        headers=headers,
    )
    assert wrong_type.status_code == 422

    too_big = b"0" * (settings.MAX_RESUME_SIZE_MB * 1024 * 1024 + 1)
    oversized = client.post(
        "/api/student/profile/resume",
        files={"resume": ("cv.pdf", too_big, "application/pdf")},
        headers=headers,
    )
    assert oversized.status_code == 422
    assert "resume" in oversized.json()["errors"]

def test_logo_upload(client, make_employer, auth):
    employer = make_employer()
    headers = auth(employer)

    rejected = client.post(
        "/api/employer/profile/logo",
        files={"logo": ("logo.pdf", b"%PDF", "application/pdf")},
        headers=headers,
    )
    assert rejected.status_code == 422
    assert "logo" in rejected.json()["errors"]

    uploaded = client.post(
        "/api/employer/profile/logo",
        files={"logo": ("logo.png", b"\x89PNG fake", "image/png")},
        headers=headers,
    )
    assert uploaded.status_code == 200
    path = uploaded.json()["data"]["logo_path"]
    assert os.path.isfile(os.path.join(settings.UPLOAD_DIR, path))

    served = client.get(f"/storage/{path}")
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"

    assert client.delete("/api/employer/profile/logo", headers=headers).status_code == 200
    assert not file_exists(path)

def test_public_profiles(client, make_student, make_employer):
    student = make_student()
    employer = make_employer()

    student_view = client.get(f"/api/profiles/student/{student.student_profile.id}")
    assert student_view.status_code == 200
    assert student_view.json()["data"]["user"]["name"] == student.name
    assert student_view.json()["data"]["resume_url"].startswith("http://testserver/storage/resumes/")

    employer_view = client.get(f"/api/profiles/employer/{employer.employer_profile.id}")
    assert employer_view.status_code == 200
    assert employer_view.json()["data"]["company_name"] == f"{employer.name} Ltd"

    assert client.get("/api/profiles/student/999").status_code == 404

def test_store_and_delete_file():
    path = store_file(b"hello", "resumes", "Notes.PDF")

    assert path.startswith("resumes/") and path.endswith(".pdf")
    assert file_exists(path)
    assert public_url(path) == f"http://testserver/storage/{path}"
    assert public_url(None) is None

    assert delete_file(path) is True
    assert not file_exists(path)
    assert delete_file(path) is False
