import io
import zipfile

from tests.conftest import SAMPLE_ARTIFACT


def test_create_and_fetch_round_trip(client, register, make_project):
    user = register()["user"]
    project = make_project(user["id"])

    fetched = client.get(f"/api/projects/{project['id']}").json()

    assert fetched["status"] == "draft"
    assert fetched["generatedCode"] is None
    assert fetched["name"] == "Shop"
    assert fetched["description"] == "A shop app"
    assert fetched["theme"] == "dark"
    assert fetched["language"] == "en"
    assert fetched["userId"] == user["id"]


def test_create_rejects_invalid_shape(client, register):
    user = register()["user"]

    missing_name = client.post("/api/projects", json={"userId": user["id"], "description": "x"})
    unknown_field = client.post(
        "/api/projects", json={"userId": user["id"], "name": "Shop", "description": "x", "status": "completed"}
    )
    unknown_user = client.post("/api/projects", json={"userId": "ghost", "name": "Shop", "description": "x"})

    assert missing_name.status_code == 400
    assert unknown_field.status_code == 400
    assert unknown_user.status_code == 400
    assert unknown_user.json()["message"] == "Invalid project data"


def test_list_requires_user_id(client):
    response = client.get("/api/projects")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_list_returns_only_owned_projects(client, register, make_project):
    ada = register()["user"]
    bob = register(username="bob", email="bob@example.com")["user"]
    first = make_project(ada["id"], name="One")
    make_project(bob["id"], name="Other")
    second = make_project(ada["id"], name="Two")

    listed = client.get("/api/projects", params={"userId": ada["id"]}).json()

    assert [p["id"] for p in listed] == [first["id"], second["id"]]


def test_patch_changes_only_given_fields(client, register, make_project):
    project = make_project(register()["user"]["id"])

    response = client.patch(f"/api/projects/{project['id']}", json={"name": "Store"})

    updated = response.json()
    assert response.status_code == 200
    assert updated["name"] == "Store"
    unchanged = {k: v for k, v in project.items() if k not in ("name", "updatedAt")}
    assert {k: v for k, v in updated.items() if k not in ("name", "updatedAt")} == unchanged
    assert updated["updatedAt"] >= project["updatedAt"]


def test_patch_rejects_unknown_fields_and_null_name(client, register, make_project):
    project = make_project(register()["user"]["id"])

    assert client.patch(f"/api/projects/{project['id']}", json={"userId": "someone-else"}).status_code == 400
    assert client.patch(f"/api/projects/{project['id']}", json={"name": None}).status_code == 400


def test_get_patch_delete_unknown_project(client):
    assert client.get("/api/projects/missing").status_code == 404
    assert client.patch("/api/projects/missing", json={"name": "x"}).status_code == 404
    assert client.delete("/api/projects/missing").status_code == 404


def test_delete_removes_project_and_its_generations(client, register, make_project, storage):
    user = register()["user"]
    project = make_project(user["id"])
    client.post("/api/generate", json={"projectId": project["id"], "userId": user["id"], "prompt": "A shop app"})

    response = client.delete(f"/api/projects/{project['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Project deleted successfully"}
    assert client.get(f"/api/projects/{project['id']}").status_code == 404
    assert client.get(f"/api/generations/{project['id']}").json() == []
    assert storage.generations._records == {}


def test_download_requires_generated_code(client, register, make_project):
    project = make_project(register()["user"]["id"])

    response = client.get(f"/api/projects/{project['id']}/download")

    assert response.status_code == 400
    assert client.get("/api/projects/missing/download").status_code == 404


def test_download_returns_flutter_project_zip(client, register, make_project):
    user = register()["user"]
    project = make_project(user["id"], name="Plant Shop")
    client.post("/api/generate", json={"projectId": project["id"], "userId": user["id"], "prompt": "Plants"})

    response = client.get(f"/api/projects/{project['id']}/download")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert response.headers["content-disposition"] == 'attachment; filename="plant-shop.zip"'
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        names = set(archive.namelist())
        assert "plant-shop/lib/main.dart" in names
        assert "plant-shop/pubspec.yaml" in names
        assert "plant-shop/lib/pages/home_page.dart" in names
        assert archive.read("plant-shop/lib/main.dart").decode() == SAMPLE_ARTIFACT.main_dart
