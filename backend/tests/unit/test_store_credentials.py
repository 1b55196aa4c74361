"""Tests for scripts.store_credentials."""

from unittest.mock import patch

import pytest

from scripts.store_credentials import generate_secret, main, store_from_env, strip_env_file


@pytest.fixture
def env_file(tmp_path):
    """Create a temporary .env file with sample content."""
    p = tmp_path / ".env"
    p.write_text(
        "# Database\n"
        "DATABASE_URL=sqlite:///./mint.db\n"
        "\n"
        "# Plaid\n"
        "PLAID_CLIENT_ID=my-client-id\n"
        "PLAID_SECRET=my-secret\n"
        "PLAID_ENVIRONMENT=sandbox\n"
        "API_KEY=\n"
    )
    return p


class TestStoreFromEnv:
    def test_stores_non_empty_credentials(self, env_file):
        with (
            patch("scripts.store_credentials.set_credential", return_value=True) as mock_set,
            patch("scripts.store_credentials.get_credential", return_value=None),
        ):
            result = store_from_env(env_file)

        assert {call.args[0] for call in mock_set.call_args_list} == {"PLAID_CLIENT_ID", "PLAID_SECRET"}
        assert result.stored == ["PLAID_CLIENT_ID", "PLAID_SECRET"]
        assert result.missing == ["API_KEY", "ENCRYPTION_KEY"]

    def test_unchanged_values_not_rewritten(self, env_file):
        with (
            patch("scripts.store_credentials.set_credential") as mock_set,
            patch(
                "scripts.store_credentials.get_credential",
                side_effect=lambda k: {"PLAID_CLIENT_ID": "my-client-id", "PLAID_SECRET": "my-secret"}.get(k),
            ),
        ):
            result = store_from_env(env_file)

        mock_set.assert_not_called()
        assert result.unchanged == ["PLAID_CLIENT_ID", "PLAID_SECRET"]

    def test_failures_reported(self, env_file):
        with (
            patch("scripts.store_credentials.set_credential", return_value=False),
            patch("scripts.store_credentials.get_credential", return_value=None),
        ):
            result = store_from_env(env_file)
        assert result.failed == ["PLAID_CLIENT_ID", "PLAID_SECRET"]


class TestStripEnvFile:
    def test_removes_only_named_keys(self, env_file):
        removed = strip_env_file(env_file, ["PLAID_CLIENT_ID", "PLAID_SECRET"])

        assert removed == 2
        content = env_file.read_text()
        assert "PLAID_CLIENT_ID" not in content
        assert "PLAID_ENVIRONMENT=sandbox" in content
        assert "# Plaid" in content

    def test_no_keys(self, env_file):
        before = env_file.read_text()
        assert strip_env_file(env_file, []) == 0
        assert env_file.read_text() == before


class TestGenerate:
    def test_generates_hex_secret(self):
        with patch("scripts.store_credentials.set_credential", return_value=True) as mock_set:
            value = generate_secret("ENCRYPTION_KEY")

        assert len(value) == 64
        int(value, 16)
        mock_set.assert_called_once_with("ENCRYPTION_KEY", value)

    def test_returns_none_when_store_fails(self):
        with patch("scripts.store_credentials.set_credential", return_value=False):
            assert generate_secret("API_KEY") is None

    def test_main_generate_api_key(self, capsys):
        with patch("scripts.store_credentials.set_credential", return_value=True):
            assert main(["--generate-api-key"]) == 0
        assert capsys.readouterr().out.startswith("API_KEY=")


class TestMain:
    def test_missing_env_file(self, tmp_path):
        assert main(["--env-file", str(tmp_path / "nope.env")]) == 1

    def test_clean(self, env_file):
        with (
            patch("scripts.store_credentials.set_credential", return_value=True),
            patch("scripts.store_credentials.get_credential", return_value=None),
        ):
            assert main(["--env-file", str(env_file), "--clean"]) == 0
        assert "PLAID_SECRET" not in env_file.read_text()
