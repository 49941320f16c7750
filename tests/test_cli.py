"""CLI tests: inputs, the secret-existed output and exit codes."""
import json
import logging
from unittest import mock

import pytest
import requests

from gh_secret_upsert.cli import main as cli
from gh_secret_upsert.secrets.domains.errors import SecretSourceError


def _response(status, body=None):
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return response


class FakeGitHub:
    """Routes patched Session.request calls by (method, url)."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, method, url, json=None, timeout=None):
        self.calls.append((method, url, json))
        return self.routes[(method, url)]

    def puts(self):
        return [call for call in self.calls if call[0] == "PUT"]


@pytest.fixture
def github():
    def _install(routes):
        fake = FakeGitHub(routes)
        patcher = mock.patch.object(requests.Session, "request", side_effect=fake)
        patcher.start()
        installed.append(patcher)
        return fake
    installed = []
    yield _install
    for patcher in installed:
        patcher.stop()


@pytest.fixture
def output_file(tmp_path, monkeypatch):
    path = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(path))
    return path


@pytest.fixture
def org_inputs(monkeypatch):
    monkeypatch.setenv("INPUT_GITHUB-TOKEN", "ghs_test")
    monkeypatch.setenv("INPUT_OWNER", "acme")
    monkeypatch.setenv("INPUT_SECRET-NAME", "X")
    monkeypatch.setenv("INPUT_SECRET-VALUE", "v1")
    monkeypatch.setenv("INPUT_OVERWRITE", "false")


API = "https://api.github.com"


class TestVersionAndUsage:
    def test_version(self, capsys):
        cli.main(["version"])
        assert capsys.readouterr().out.strip() == f"gh-secret-upsert {cli.VERSION}"

    def test_no_command_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 2


class TestUpsertCommand:
    def test_org_secret_created_from_action_inputs(self, github, output_file, org_inputs, public_key_b64, open_sealed):
        fake = github({
            ("GET", f"{API}/orgs/acme/actions/secrets/X"): _response(404, {"message": "Not Found"}),
            ("GET", f"{API}/orgs/acme/actions/secrets/public-key"): _response(200, {"key_id": "k1", "key": public_key_b64}),
            ("PUT", f"{API}/orgs/acme/actions/secrets/X"): _response(201),
        })

        cli.main(["upsert"])

        assert output_file.read_text() == "secret-existed=false\n"
        (_, _, body), = fake.puts()
        assert body["visibility"] == "all"
        assert body["key_id"] == "k1"
        assert open_sealed(body["encrypted_value"]) == b"v1"

    def test_existing_env_secret_skipped_without_overwrite(self, github, output_file, monkeypatch):
        fake = github({
            ("GET", f"{API}/repos/acme/web/environments/prod/secrets/X"): _response(
                200, {"name": "X", "created_at": "2024-01-01T00:00:00Z", "updated_at": "2024-01-02T00:00:00Z"}
            ),
        })

        cli.main([
            "upsert", "--owner", "acme", "--repo", "web", "--environment", "prod",
            "--secret-name", "X", "--secret-value", "v1", "--token", "t",
        ])

        assert output_file.read_text() == "secret-existed=true\n"
        assert fake.puts() == []

    def test_overwrite_flag_rewrites_existing_repo_secret(self, github, output_file, public_key_b64, open_sealed):
        fake = github({
            ("GET", f"{API}/repos/acme/web/actions/secrets/X"): _response(200, {"name": "X"}),
            ("GET", f"{API}/repos/acme/web/actions/secrets/public-key"): _response(200, {"key_id": "k2", "key": public_key_b64}),
            ("PUT", f"{API}/repos/acme/web/actions/secrets/X"): _response(204),
        })

        cli.main([
            "upsert", "--owner", "acme", "--repo", "web", "--secret-name", "X",
            "--secret-value", "v2", "--overwrite",
        ])

        assert output_file.read_text() == "secret-existed=true\n"
        (_, _, body), = fake.puts()
        assert "visibility" not in body
        assert open_sealed(body["encrypted_value"]) == b"v2"

    def test_output_printed_without_github_output(self, github, org_inputs, capsys, public_key_b64):
        github({
            ("GET", f"{API}/orgs/acme/actions/secrets/X"): _response(404),
            ("GET", f"{API}/orgs/acme/actions/secrets/public-key"): _response(200, {"key_id": "k1", "key": public_key_b64}),
            ("PUT", f"{API}/orgs/acme/actions/secrets/X"): _response(201),
        })

        cli.main(["upsert"])

        assert "secret-existed=false" in capsys.readouterr().out

    def test_api_url_from_environment(self, github, output_file, org_inputs, monkeypatch, public_key_b64):
        monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example.com/api/v3")
        ghe = "https://ghe.example.com/api/v3"
        github({
            ("GET", f"{ghe}/orgs/acme/actions/secrets/X"): _response(404),
            ("GET", f"{ghe}/orgs/acme/actions/secrets/public-key"): _response(200, {"key_id": "k1", "key": public_key_b64}),
            ("PUT", f"{ghe}/orgs/acme/actions/secrets/X"): _response(201),
        })

        cli.main(["upsert"])

        assert output_file.read_text() == "secret-existed=false\n"

    def test_public_key_403_fails_without_output(self, github, output_file, org_inputs, capsys):
        fake = github({
            ("GET", f"{API}/orgs/acme/actions/secrets/X"): _response(404),
            ("GET", f"{API}/orgs/acme/actions/secrets/public-key"): _response(
                403, {"message": "Resource not accessible by integration"}
            ),
        })

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["upsert"])

        assert exc_info.value.code == 1
        assert not output_file.exists()
        assert fake.puts() == []
        assert "Resource not accessible by integration" in capsys.readouterr().err

    def test_error_is_workflow_command_inside_actions(self, github, org_inputs, monkeypatch, capsys):
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        github({("GET", f"{API}/orgs/acme/actions/secrets/X"): _response(500, {"message": "Server Error"})})

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["upsert"])

        assert exc_info.value.code == 1
        assert capsys.readouterr().out.startswith("::error::500: Server Error")

    def test_transport_failure_exits_1(self, org_inputs):
        with mock.patch.object(requests.Session, "request", side_effect=requests.exceptions.ConnectionError("dns")):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["upsert"])
        assert exc_info.value.code == 1


def _org_routes(public_key_b64, existing=False):
    secret = _response(200, {"name": "X"}) if existing else _response(404)
    return {
        ("GET", f"{API}/orgs/acme/actions/secrets/X"): secret,
        ("GET", f"{API}/orgs/acme/actions/secrets/public-key"): _response(200, {"key_id": "k1", "key": public_key_b64}),
        ("PUT", f"{API}/orgs/acme/actions/secrets/X"): _response(204),
    }


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield root
    root.setLevel(level)


class TestDriverBehaviour:
    def test_environment_without_repo_writes_org_secret(self, github, output_file, org_inputs, monkeypatch,
                                                        public_key_b64, caplog):
        monkeypatch.setenv("INPUT_ENVIRONMENT", "prod")
        fake = github(_org_routes(public_key_b64))

        with caplog.at_level(logging.WARNING):
            cli.main(["upsert"])

        assert "Ignoring environment 'prod'" in caplog.text
        assert [url for _, url, _ in fake.calls] == [
            f"{API}/orgs/acme/actions/secrets/X",
            f"{API}/orgs/acme/actions/secrets/public-key",
            f"{API}/orgs/acme/actions/secrets/X",
        ]
        (_, _, body), = fake.puts()
        assert body["visibility"] == "all"

    @pytest.mark.parametrize("flag,level", [("-q", logging.WARNING), ("-v", logging.DEBUG)])
    def test_verbosity_flags_set_root_level(self, github, output_file, org_inputs, public_key_b64,
                                            restore_root_level, flag, level):
        github(_org_routes(public_key_b64))

        cli.main(["upsert", flag])

        assert restore_root_level.level == level

    def test_log_level_from_settings_file(self, github, output_file, org_inputs, public_key_b64,
                                          restore_root_level, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("logging:\n  level: warning\n")
        github(_org_routes(public_key_b64))

        cli.main(["upsert", "--config", str(config)])

        assert restore_root_level.level == logging.WARNING

    def test_flag_wins_over_settings_file(self, github, output_file, org_inputs, public_key_b64,
                                          restore_root_level, tmp_path):
        config = tmp_path / "config.yml"
        config.write_text("logging:\n  level: warning\n")
        github(_org_routes(public_key_b64))

        cli.main(["upsert", "--config", str(config), "-v"])

        assert restore_root_level.level == logging.DEBUG

    def test_no_overwrite_flag_overrides_input(self, github, output_file, org_inputs, monkeypatch, public_key_b64):
        monkeypatch.setenv("INPUT_OVERWRITE", "true")
        fake = github(_org_routes(public_key_b64, existing=True))

        cli.main(["upsert", "--no-overwrite"])

        assert output_file.read_text() == "secret-existed=true\n"
        assert fake.puts() == []

    def test_overwrite_input_applies_without_flag(self, github, output_file, org_inputs, monkeypatch, public_key_b64):
        monkeypatch.setenv("INPUT_OVERWRITE", "TRUE")
        fake = github(_org_routes(public_key_b64, existing=True))

        cli.main(["upsert"])

        assert len(fake.puts()) == 1


class TestUsageErrors:
    def test_missing_owner_exits_2(self, org_inputs, monkeypatch, capsys):
        monkeypatch.setenv("INPUT_OWNER", "")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["upsert"])
        assert exc_info.value.code == 2
        assert "missing owner" in capsys.readouterr().err

    @pytest.mark.parametrize("name", ["api-key", "1PASSWORD", "GITHUB_TOKEN", "has space"])
    def test_invalid_secret_name_exits_2(self, org_inputs, monkeypatch, name):
        monkeypatch.setenv("INPUT_SECRET-NAME", name)
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["upsert"])
        assert exc_info.value.code == 2

    def test_missing_secret_value_exits_2(self, org_inputs, monkeypatch, capsys):
        monkeypatch.delenv("INPUT_SECRET-VALUE")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["upsert"])
        assert exc_info.value.code == 2
        assert "missing secret-value" in capsys.readouterr().err

    def test_missing_config_file_exits_2(self, org_inputs, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["upsert", "--config", str(tmp_path / "missing.yml")])
        assert exc_info.value.code == 2


class TestGcpValueSource:
    def test_value_read_from_gcp(self, github, output_file, org_inputs, monkeypatch, public_key_b64, open_sealed):
        monkeypatch.delenv("INPUT_SECRET-VALUE")
        fake = github({
            ("GET", f"{API}/orgs/acme/actions/secrets/X"): _response(404),
            ("GET", f"{API}/orgs/acme/actions/secrets/public-key"): _response(200, {"key_id": "k1", "key": public_key_b64}),
            ("PUT", f"{API}/orgs/acme/actions/secrets/X"): _response(201),
        })

        with mock.patch("gh_secret_upsert.secrets.domains.gcp_client.GCPSecretClient") as gcp:
            gcp.return_value.get_project_id.return_value = "proj"
            gcp.return_value.fetch_secret.return_value = "from-gcp"
            cli.main(["upsert", "--gcp-secret", "DB_PASS", "--gcp-project", "proj"])

        gcp.return_value.get_project_id.assert_called_once_with("proj")
        gcp.return_value.fetch_secret.assert_called_once_with("DB_PASS", "proj")
        (_, _, body), = fake.puts()
        assert open_sealed(body["encrypted_value"]) == b"from-gcp"

    def test_gcp_failure_exits_1_before_any_request(self, org_inputs):
        with mock.patch.object(requests.Session, "request") as session_request, \
                mock.patch("gh_secret_upsert.secrets.domains.gcp_client.GCPSecretClient") as gcp:
            gcp.return_value.fetch_secret.side_effect = SecretSourceError("GCP fetch failed for DB_PASS")
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["upsert", "--gcp-secret", "DB_PASS"])

        assert exc_info.value.code == 1
        session_request.assert_not_called()
