import pytest

from peoplegraph.config import Settings, load_settings


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings == Settings()
        assert settings.request_timeout == 300
        assert settings.people_table == "People"
        assert settings.view == "Grid view"

    def test_overrides(self):
        settings = load_settings({
            "AIRTABLE_API_KEY": "key1",
            "AIRTABLE_DB_ID": "app1",
            "AIRTABLE_ENDPOINT_URL": "http://localhost:9000/",
            "AIRTABLE_REQUEST_TIMEOUT": "12.5",
            "PEOPLE_TABLE": "Staff",
            "SIMULATION_TICK_INTERVAL": "0",
            "LOG_LEVEL": "debug",
        })
        assert settings.airtable_api_key == "key1"
        assert settings.airtable_base_id == "app1"
        assert settings.airtable_endpoint_url == "http://localhost:9000"
        assert settings.request_timeout == 12.5
        assert settings.people_table == "Staff"
        assert settings.tick_interval == 0
        assert settings.log_level == "DEBUG"

    def test_blank_number_uses_default(self):
        assert load_settings({"AIRTABLE_REQUEST_TIMEOUT": " "}).request_timeout == 300

    @pytest.mark.parametrize("raw", ["soon", "-1"])
    def test_bad_number(self, raw):
        with pytest.raises(ValueError, match="AIRTABLE_REQUEST_TIMEOUT"):
            load_settings({"AIRTABLE_REQUEST_TIMEOUT": raw})
