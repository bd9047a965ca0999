import shutil
from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from chargebee_typegen.cli import main
from chargebee_typegen.errors import RetrievalFailed

FIXTURES = Path(__file__).parent / "fixtures"


def _warm_cache(cache_dir: Path) -> Path:
    cache_dir.mkdir(parents=True, exist_ok=True)
    for name in ["index.html", "subscriptions.html", "customers.html"]:
        shutil.copy(FIXTURES / name, cache_dir / name)
    return cache_dir


class TestCliGenerate:
    def test_generate_from_warm_cache(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")
        output_file = tmp_path / "dist" / "index.d.ts"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate",
            "-o", str(output_file),
            "--cache-dir", str(cache_dir),
        ])

        assert result.exit_code == 0, result.output
        assert "Built 2 resource namespaces." in result.output
        assert "3 diagnostics:" in result.output
        assert "unresolved-reference" in result.output
        text = output_file.read_text(encoding="utf-8")
        assert 'declare module "chargebee" {' in text
        assert "namespace _subscription {" in text
        assert (cache_dir / "subscriptions.html.tree.json").exists()

    def test_repeated_runs_are_byte_identical(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")
        first = tmp_path / "first.d.ts"
        second = tmp_path / "second.d.ts"

        runner = CliRunner()
        for output_file in (first, second):
            result = runner.invoke(main, ["generate", "-o", str(output_file), "--cache-dir", str(cache_dir)])
            assert result.exit_code == 0, result.output

        assert first.read_bytes() == second.read_bytes()

    def test_level_option(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")
        output_file = tmp_path / "index.d.ts"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", "-o", str(output_file), "--cache-dir", str(cache_dir), "--level", "model",
        ])

        assert result.exit_code == 0, result.output
        assert "(level: model)" in result.output
        text = output_file.read_text(encoding="utf-8")
        assert "interface ContractTerm" not in text
        assert "Requests.RequestWrapper<" not in text.split("namespace _subscription {")[1]

    def test_config_file(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")
        output_file = tmp_path / "out" / "types.d.ts"
        config_file = tmp_path / "typegen.yaml"
        config_file.write_text(
            f"cache_dir: {cache_dir}\noutput: {output_file}\nlevel: types\nroot_namespace: Billing\n",
            encoding="utf-8",
        )

        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        text = output_file.read_text(encoding="utf-8")
        assert "export = Billing;" in text
        assert "interface ContractTerm {" in text

    def test_structural_failure_exits_with_error(self, tmp_path):
        cache_dir = tmp_path / "cache"
        cache_dir.mkdir()
        (cache_dir / "index.html").write_text("<p>No resources today.</p>", encoding="utf-8")
        output_file = tmp_path / "index.d.ts"

        runner = CliRunner()
        result = runner.invoke(main, ["generate", "-o", str(output_file), "--cache-dir", str(cache_dir)])

        assert result.exit_code == 1
        assert "Missing resource links on index page." in result.output
        assert not output_file.exists()


class TestCliResources:
    def test_lists_discovered_resources(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")

        runner = CliRunner()
        result = runner.invoke(main, ["resources", "--cache-dir", str(cache_dir)])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[-2:] == ["subscriptions", "customers"]


class TestCliFetch:
    def test_fetch_named_pages_from_cache(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")

        runner = CliRunner()
        result = runner.invoke(main, ["fetch", "customers", "--cache-dir", str(cache_dir)])

        assert result.exit_code == 0, result.output
        assert f"Cached 1 pages in {cache_dir}" in result.output
        assert (cache_dir / "customers.html.tree.json").exists()

    def test_fetch_everything_listed_on_index(self, tmp_path):
        cache_dir = _warm_cache(tmp_path / "cache")

        runner = CliRunner()
        result = runner.invoke(main, ["fetch", "--cache-dir", str(cache_dir)])

        assert result.exit_code == 0, result.output
        assert "Cached 2 pages" in result.output
        assert (cache_dir / "index.html.tree.json").exists()


class TestCliErrors:
    @patch("chargebee_typegen.cli.assemble", new_callable=AsyncMock)
    def test_retrieval_failure(self, mock_assemble, tmp_path):
        mock_assemble.side_effect = RetrievalFailed("", 503, "Service Unavailable")
        output_file = tmp_path / "index.d.ts"

        runner = CliRunner()
        result = runner.invoke(main, ["generate", "-o", str(output_file), "--cache-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Failed to retrieve resource: index: 503: Service Unavailable" in result.output
        mock_assemble.assert_awaited_once()
        assert not output_file.exists()

    def test_missing_config_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", "--config", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 2

    def test_invalid_config_value(self, tmp_path):
        config_file = tmp_path / "typegen.yaml"
        config_file.write_text("timeout: soon\n", encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(main, ["resources", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
