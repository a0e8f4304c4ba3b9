from condition_reports.config import Settings


def test_disclaimer_is_versioned_and_branded():
    settings = Settings(company_name="Acme Inspections", disclaimer_version="2.1")

    text = settings.disclaimer_text

    assert text.startswith("Disclaimer v2.1: ")
    assert "Acme Inspections provides tooling only" in text


def test_memory_data_source_can_be_selected():
    settings = Settings(data_source="memory", heartbeat_enabled=False)
    assert settings.data_source == "memory"
    assert settings.uploads_root_path.name == "uploads"
