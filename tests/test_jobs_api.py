from fastapi.testclient import TestClient

NEW_JOB = {
    "title": "new Job route",
    "salary": 60000,
    "equity": 0.5,
    "company_handle": "c2",
}


def test_create_job_as_admin_serializes_equity_as_string(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post("/jobs", json=NEW_JOB, headers=admin_headers)
    assert response.status_code == 201
    assert response.json() == {
        "title": "new Job route",
        "salary": 60000,
        "equity": "0.5",
        "company_handle": "c2",
    }


def test_create_job_denies_non_admin(client: TestClient, u1_headers: dict[str, str]) -> None:
    response = client.post("/jobs", json=NEW_JOB, headers=u1_headers)
    assert response.status_code == 401


def test_create_job_missing_company_handle(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post("/jobs", json={"title": "new Job", "salary": 50000, "equity": 0}, headers=admin_headers)
    assert response.status_code == 422


def test_create_job_unknown_company_is_bad_request(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post("/jobs", json={**NEW_JOB, "company_handle": "not-a-company"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No company: not-a-company"


def test_create_job_rejects_equity_above_one(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.post("/jobs", json={**NEW_JOB, "equity": 1.5}, headers=admin_headers)
    assert response.status_code == 422


def test_list_jobs_is_public(client: TestClient) -> None:
    response = client.get("/jobs")
    assert response.status_code == 200
    assert [job["title"] for job in response.json()] == ["Job 1", "Job 2", "Job 3"]


def test_list_jobs_filters_by_title(client: TestClient, fake_repo) -> None:
    response = client.get("/jobs", params={"title": "2"})
    assert response.status_code == 200
    assert response.json() == [{"title": "Job 2", "salary": 200, "equity": "0", "company_handle": "c1"}]
    assert fake_repo.list_criteria[-1] == {"title": "2", "min_salary": None, "has_equity": None}


def test_list_jobs_parses_query_types(client: TestClient, fake_repo) -> None:
    response = client.get("/jobs", params={"minSalary": "150", "hasEquity": "true"})
    assert response.status_code == 200
    assert fake_repo.list_criteria[-1] == {"title": None, "min_salary": 150, "has_equity": True}


def test_get_job(client: TestClient) -> None:
    response = client.get("/jobs/1")
    assert response.status_code == 200
    assert response.json()["title"] == "Job 1"


def test_get_job_not_found(client: TestClient) -> None:
    response = client.get("/jobs/99")
    assert response.status_code == 404
    assert response.json()["detail"] == "No job with id 99"


def test_patch_job_as_admin(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/jobs/1", json={"title": "Job 1 renamed", "equity": "0.25"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Job 1 renamed"
    assert response.json()["equity"] == "0.25"


def test_patch_job_empty_payload_is_bad_request(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/jobs/1", json={}, headers=admin_headers)
    assert response.status_code == 400


def test_patch_job_cannot_move_company(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/jobs/1", json={"company_handle": "c2"}, headers=admin_headers)
    assert response.status_code == 422


def test_patch_job_not_found(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.patch("/jobs/99", json={"title": "x"}, headers=admin_headers)
    assert response.status_code == 404


def test_delete_job_then_get_is_not_found(client: TestClient, admin_headers: dict[str, str]) -> None:
    response = client.delete("/jobs/1", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"deleted": 1}
    assert client.get("/jobs/1").status_code == 404


def test_delete_job_denies_anonymous(client: TestClient) -> None:
    response = client.delete("/jobs/1")
    assert response.status_code == 401
