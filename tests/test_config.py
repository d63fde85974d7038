from pathlib import Path

import pytest

from config import (
    get_chunk_store_path,
    get_config_value,
    get_float,
    get_ingestion_dir,
    get_int,
    load_config,
    resolve_path,
)


class TestLoadConfig:
    def test_env_default_used_when_unset(
        self, temp_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("TEST_OLLAMA_URL", raising=False)

        config = load_config(temp_config)

        assert config["embedding"]["base_url"] == "http://localhost:11434"

    def test_env_value_substituted(
        self, temp_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TEST_OLLAMA_URL", "http://ollama:11434")

        config = load_config(temp_config)

        assert config["embedding"]["base_url"] == "http://ollama:11434"

    def test_non_string_values_untouched(self, temp_config: Path) -> None:
        config = load_config(temp_config)

        assert config["reranking"]["enabled"] is True
        assert config["reranking"]["max_workers"] == 2
        assert config["retrieval"]["relevance_threshold"] == 0.65


class TestConfigValues:
    def test_get_config_value_dot_path(self) -> None:
        config = {"retrieval": {"preset": "strict"}}

        assert get_config_value(config, "retrieval.preset") == "strict"
        assert get_config_value(config, "retrieval.missing", "x") == "x"
        assert get_config_value(config, "retrieval.preset.deeper", 1) == 1

    def test_get_float_coerces_strings(self) -> None:
        config = {"retrieval": {"relevance_threshold": "0.7", "empty": ""}}

        assert get_float(config, "retrieval.relevance_threshold") == 0.7
        assert get_float(config, "retrieval.empty") is None
        assert get_float(config, "retrieval.missing", 0.5) == 0.5

    def test_get_float_rejects_garbage(self) -> None:
        with pytest.raises(ValueError, match="not a number"):
            get_float({"retrieval": {"relevance_threshold": "high"}}, "retrieval.relevance_threshold")

    def test_get_int(self) -> None:
        config = {"reranking": {"max_workers": "4"}}

        assert get_int(config, "reranking.max_workers") == 4
        assert get_int(config, "reranking.missing", 1) == 1
        with pytest.raises(ValueError, match="not an integer"):
            get_int({"reranking": {"max_workers": "many"}}, "reranking.max_workers")


class TestPaths:
    def test_resolve_path_relative_to_config(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"

        assert resolve_path("storage", config_path) == (tmp_path / "storage").resolve()
        assert resolve_path(tmp_path / "abs", config_path) == tmp_path / "abs"

    def test_chunk_store_path_defaults(self, tmp_path: Path) -> None:
        config_path = tmp_path / "config.toml"

        path = get_chunk_store_path({}, config_path)

        assert path == (tmp_path / "storage").resolve() / "chunks.json"

    def test_chunk_store_path_custom(self, tmp_path: Path) -> None:
        config = {"storage": {"directory": "kb", "chunks_file": "kb.json"}}

        path = get_chunk_store_path(config, tmp_path / "config.toml")

        assert path == (tmp_path / "kb").resolve() / "kb.json"

    def test_ingestion_dir(self, tmp_path: Path) -> None:
        path = get_ingestion_dir({}, tmp_path / "config.toml")

        assert path == (tmp_path / "data/documents").resolve()
