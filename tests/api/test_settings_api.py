class TestControllerSettingsApi:

    def test_get_defaults(self, client):
        response = client.get("/api/gym-controller-settings")
        assert response.status_code == 200
        settings = response.json()["settings"]
        assert settings["booking_min_days_ahead"] == 1
        assert settings["booking_max_days_ahead"] == 2
        assert settings["max_occupancy"] == 15

    def test_update(self, client):
        response = client.post("/api/gym-controller-settings", json={
            "booking_min_days_ahead": 0,
            "booking_max_days_ahead": 7,
            "max_occupancy": 25,
        })
        assert response.status_code == 200
        assert response.json()["settings"]["max_occupancy"] == 25
        assert client.get("/gym-controller-settings").json()["settings"]["booking_max_days_ahead"] == 7

    def test_min_above_max(self, client):
        response = client.post("/api/gym-controller-settings", json={"booking_min_days_ahead": 5})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_out_of_range(self, client):
        response = client.post("/api/gym-controller-settings", json={"booking_max_days_ahead": 45})
        assert response.status_code == 400


class TestSupportContactApi:

    def test_get_and_update(self, client):
        assert client.get("/api/app-settings/support-contact").json()["phone"] == "+6281275000560"

        response = client.post("/api/app-settings/support-contact", json={
            "name": "Front Desk",
            "phone": "(0812) 555-0101",
        })

        assert response.status_code == 200
        assert response.json() == {"ok": True, "name": "Front Desk", "phone": "08125550101"}
        assert client.get("/api/app-settings/support-contact").json()["name"] == "Front Desk"

    def test_invalid_phone(self, client):
        response = client.post("/api/app-settings/support-contact", json={"name": "Desk", "phone": "12"})
        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert "Invalid contact phone" in data["error"]


class TestDatabaseConnectionsApi:

    def _create(self, client, **overrides):
        body = {
            "display_name": "HR",
            "database_type": "mysql",
            "host": "hr.local",
            "port": 3306,
            "database_name": "hr",
            "username": "reader",
            "password": "secret",
        }
        body.update(overrides)
        return client.post("/api/db-connections", json=body)

    def test_password_is_never_returned(self, client):
        response = self._create(client)
        assert response.status_code == 200
        connection = response.json()["connection"]
        assert connection["connection_status"] == "untested"
        assert "password" not in connection
        assert "password_encrypted" not in connection

        listed = client.get("/api/db-connections").json()["connections"]
        assert [c["display_name"] for c in listed] == ["HR"]
        assert "password_encrypted" not in listed[0]

    def test_update_and_delete(self, client):
        connection_id = self._create(client).json()["connection"]["id"]

        response = client.put(f"/api/db-connections/{connection_id}", json={"display_name": "HR replica"})
        assert response.status_code == 200
        assert response.json()["connection"]["display_name"] == "HR replica"

        assert client.delete(f"/api/db-connections/{connection_id}").json() == {"ok": True}
        assert client.get(f"/api/db-connections/{connection_id}").status_code == 404

    def test_host_required(self, client):
        response = self._create(client, host=None)
        assert response.status_code == 400

    def test_sqlite_probe(self, client, tmp_path):
        connection_id = self._create(
            client, database_type="sqlite", host=None, port=None, database_name=str(tmp_path / "probe.db")
        ).json()["connection"]["id"]

        response = client.post(f"/api/db-connections/{connection_id}/test")

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert client.get(f"/api/db-connections/{connection_id}").json()["connection"]["connection_status"] == "success"
