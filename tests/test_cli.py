"""
Tests for CLI commands — setup, status, detect, config check, init, backups.
"""

import json
from pathlib import Path

from click.testing import CliRunner

from dotstrap.main import cli


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "dotstrap" in result.output
        for command in ("setup", "status", "detect", "config", "init", "backups"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_config_from_env(self, manifest_path: Path, monkeypatch):
        monkeypatch.setenv("DOTSTRAP_CONFIG", str(manifest_path))
        result = CliRunner().invoke(cli, ["config", "check"])
        assert result.exit_code == 0
        assert "test-dotfiles" in result.output


class TestSetupCommand:
    def test_links(self, home: Path, manifest_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "setup"])

        assert result.exit_code == 0, result.output
        assert "Setup complete!" in result.output
        assert f"{home / '.zshrc'} -> " in result.output
        assert "Linked:" in result.output
        assert (home / ".zshrc").is_symlink()

    def test_backup_dir_reported(self, home: Path, manifest_path: Path):
        (home / ".zshrc").write_text("old")
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "setup"])
        assert f"Backups saved to: {home / '.dotfiles-backup'}" in result.output

    def test_errors_exit_1(self, home: Path, manifest_path: Path, dotfiles_dir: Path):
        (dotfiles_dir / ".vimrc").unlink()

        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "setup"])

        assert result.exit_code == 1
        assert "Setup finished with 1 error(s)" in result.output
        assert f"{home / '.vimrc'} (not a symlink)" in result.output
        assert "-> (not a symlink)" not in result.output

    def test_dry_run(self, home: Path, manifest_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(manifest_path), "setup", "--dry-run"]
        )
        assert result.exit_code == 0
        assert "[dry-run]" in result.output
        assert not (home / ".zshrc").exists()

    def test_install_mock(self, home: Path, manifest_path: Path, tmp_path: Path, monkeypatch):
        empty = tmp_path / "empty-bin"
        empty.mkdir()
        monkeypatch.setenv("PATH", str(empty))

        result = CliRunner().invoke(
            cli, ["--config", str(manifest_path), "setup", "--install", "--mock"]
        )

        assert result.exit_code == 0, result.output
        assert "[mock]" in result.output
        assert "==> Installing Homebrew..." in result.output
        assert "TPM install script not found" in result.output

    def test_mock_link_messages_match_real_run(self, home: Path, manifest_path: Path, dotfiles_dir: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "setup", "--mock"])

        assert result.exit_code == 0, result.output
        assert f"Linked: {home / '.zshrc'} -> {dotfiles_dir.resolve() / '.zshrc'}" in result.output
        assert "installed" not in result.output

    def test_json(self, home: Path, manifest_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(manifest_path), "setup", "--json"]
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["error_count"] == 0
        assert data["report"]["succeeded"] == 3

    def test_missing_config(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["setup"])
        assert result.exit_code == 1
        assert "No dotfiles.yml found" in result.output

    def test_missing_config_json(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["setup", "--json"])
        assert result.exit_code == 1
        assert "error" in json.loads(result.output)


class TestStatusCommand:
    def test_status(self, home: Path, manifest_path: Path):
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(manifest_path), "setup"])

        result = runner.invoke(cli, ["--config", str(manifest_path), "status"])

        assert result.exit_code == 0
        assert "test-dotfiles" in result.output
        assert "Links: 3/3 linked" in result.output
        assert "Last operation:" in result.output

    def test_recent_runs(self, home: Path, manifest_path: Path):
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(manifest_path), "setup"])
        runner.invoke(cli, ["--config", str(manifest_path), "setup"])

        result = runner.invoke(cli, ["--config", str(manifest_path), "status"])
        assert "Recent runs:" in result.output

        data = json.loads(
            runner.invoke(cli, ["--config", str(manifest_path), "status", "--json"]).output
        )
        assert [run["mode"] for run in data["recent_runs"]] == ["link", "link"]

    def test_status_json(self, home: Path, manifest_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "status", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["manifest_name"] == "test-dotfiles"
        assert {link["state"] for link in data["links"]} == {"missing"}

    def test_status_missing_config(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["status"])
        assert result.exit_code == 1
        assert "No dotfiles.yml" in result.output


class TestDetectCommand:
    def test_detect(self, manifest_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "detect"])
        assert result.exit_code == 0
        assert "Platform" in result.output
        assert "Package manager:" in result.output
        assert "Neovim" in result.output
        assert "Adapters:" in result.output
        assert "✓ link" in result.output

    def test_detect_json(self, manifest_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "detect", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert "system" in data["platform"]
        assert data["adapters"]["link"]["available"] is True


class TestConfigCheckCommand:
    def test_valid(self, manifest_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "config", "check"])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_invalid(self, manifest_path: Path, dotfiles_dir: Path):
        (dotfiles_dir / ".zshrc").unlink()
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "config", "check"])
        assert result.exit_code == 1
        assert "Link source does not exist: .zshrc" in result.output

    def test_json(self, manifest_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(manifest_path), "config", "check", "--json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output)["valid"] is True


class TestInitCommand:
    def test_init(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["init", str(tmp_path)])
        assert result.exit_code == 0
        assert (tmp_path / "dotfiles.yml").is_file()

    def test_init_existing(self, tmp_path: Path):
        (tmp_path / "dotfiles.yml").write_text("name: x\n")
        result = CliRunner().invoke(cli, ["init", str(tmp_path)])
        assert result.exit_code == 1
        assert "--force" in result.output

    def test_init_force(self, tmp_path: Path):
        (tmp_path / "dotfiles.yml").write_text("name: x\n")
        result = CliRunner().invoke(cli, ["init", str(tmp_path), "--force"])
        assert result.exit_code == 0
        assert "Overwrote" in result.output

    def test_init_json(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["init", str(tmp_path), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "path": str(tmp_path / "dotfiles.yml"),
            "overwritten": False,
        }

    def test_init_json_existing(self, tmp_path: Path):
        (tmp_path / "dotfiles.yml").write_text("name: x\n")
        result = CliRunner().invoke(cli, ["init", str(tmp_path), "--json"])
        assert result.exit_code == 1
        assert "already exists" in json.loads(result.output)["error"]

    def test_init_cwd(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "dotfiles.yml").is_file()


class TestBackupsCommand:
    def test_empty(self, home: Path, manifest_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(manifest_path), "backups", "list"])
        assert result.exit_code == 0
        assert "No backups" in result.output

    def test_list(self, home: Path, manifest_path: Path):
        (home / ".zshrc").write_text("old")
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(manifest_path), "setup"])

        result = runner.invoke(cli, ["--config", str(manifest_path), "backups", "list"])

        assert result.exit_code == 0
        assert ".zshrc." in result.output

    def test_json(self, home: Path, manifest_path: Path):
        result = CliRunner().invoke(
            cli, ["--config", str(manifest_path), "backups", "list", "--json"]
        )
        assert json.loads(result.output)["entries"] == []
