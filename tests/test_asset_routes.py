from fastapi import status


def test_create_asset_defaults(client, seeded):
    response = client.post(
        "/assets/",
        json={"fileName": "smoke_sim.obj", "fileType": "", "fileSize": 10, "projectId": "1"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == 4
    assert data["fileType"] == "application/octet-stream"
    assert data["projectId"] == 1
    assert data["tags"] == []
    assert data["uploadDate"]


def test_create_asset_too_large(client):
    response = client.post(
        "/assets/",
        json={"fileName": "huge.mp4", "fileType": "video/mp4", "fileSize": 100 * 1024 * 1024 + 1},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "File huge.mp4 is too large (max 100MB)"


def test_create_asset_unsupported_format(client):
    response = client.post(
        "/assets/", json={"fileName": "notes.txt", "fileType": "text/plain", "fileSize": 12}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "not a supported format" in response.json()["detail"]


def test_create_asset_model_by_extension(client):
    response = client.post(
        "/assets/", json={"fileName": "Ship.BLEND", "fileType": "application/x-blender", "fileSize": 1}
    )
    assert response.status_code == status.HTTP_200_OK


def test_list_assets_resolves_project_titles(client, seeded):
    assets = client.get("/assets/").json()
    titles = {a["fileName"]: a["projectTitle"] for a in assets}
    assert titles == {
        "nebula_plate_v003.png": "Nebula Drift",
        "harbor_flythrough.mp4": "Harbor Lights",
        "ship_rig.fbx": "Unknown Project",
    }


def test_list_assets_search_matches_tags(client, seeded):
    assets = client.get("/assets/", params={"search": "PREVIS"}).json()
    assert [a["fileName"] for a in assets] == ["harbor_flythrough.mp4"]


def test_list_assets_by_type(client, seeded):
    def names(asset_type):
        return [a["fileName"] for a in client.get("/assets/", params={"type": asset_type}).json()]

    assert names("image") == ["nebula_plate_v003.png"]
    assert names("video") == ["harbor_flythrough.mp4"]
    assert names("model") == ["ship_rig.fbx"]
    assert names("other") == []


def test_list_assets_unknown_type(client, seeded):
    response = client.get("/assets/", params={"type": "audio"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_list_assets_by_project_coerces_id(client, seeded):
    assets = client.get("/assets/", params={"projectId": "2"}).json()
    assert [a["fileName"] for a in assets] == ["harbor_flythrough.mp4"]

    assert client.get("/assets/", params={"projectId": "abc"}).json() == []


def test_list_assets_filters_are_conjunctive(client, seeded):
    assets = client.get(
        "/assets/", params={"search": "plate", "type": "video", "projectId": "1"}
    ).json()
    assert assets == []


def test_get_update_delete_asset(client, seeded):
    asset = client.get("/assets/1").json()
    assert asset["projectTitle"] == "Nebula Drift"

    updated = client.patch("/assets/1", json={"tags": ["plate", "final"]}).json()
    assert updated["tags"] == ["plate", "final"]
    assert updated["fileName"] == "nebula_plate_v003.png"

    assert client.delete("/assets/1").status_code == status.HTTP_200_OK
    assert client.delete("/assets/1").status_code == status.HTTP_404_NOT_FOUND
