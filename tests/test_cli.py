"""Tests for the command-line entry point"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
import yaml

from sense_ingest import __version__
from sense_ingest.cli import async_main, build_parser
from sense_ingest.errors import StartupError


def write_config(tmp_path, **sections) -> str:
    data = {
        "remo": {"enabled": False},
        "co2": {"enabled": False},
        "meter": {"enabled": False},
    }
    data.update(sections)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


class TestParser:
    """Test argument parsing"""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.once is False
        assert args.dry_run is False
        assert args.verbose is False

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestAsyncMain:
    """Test async_main exit codes"""

    @pytest.mark.asyncio
    async def test_missing_config_exits_nonzero(self, tmp_path):
        assert await async_main(["-c", str(tmp_path / "missing.yaml")]) == 1

    @pytest.mark.asyncio
    async def test_once_dry_run_without_sources(self, tmp_path):
        assert await async_main(["-c", write_config(tmp_path), "--once", "--dry-run"]) == 0

    @pytest.mark.asyncio
    async def test_once_dry_run_polls_co2(self, tmp_path):
        config = write_config(tmp_path, co2={"ip": "192.168.0.116"})
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"co2": 612}))
        real_client = httpx.AsyncClient

        def client_factory(*args, **kwargs):
            return real_client(transport=transport)

        with patch("sense_ingest.datasources.http_source.httpx.AsyncClient", client_factory):
            assert await async_main(["-c", config, "--once", "--dry-run"]) == 0

    @pytest.mark.asyncio
    async def test_redis_unavailable_exits_nonzero(self, tmp_path):
        connect = AsyncMock(side_effect=StartupError("Failed to connect to Redis"))
        with patch("sense_ingest.sink.connect_redis", connect):
            assert await async_main(["-c", write_config(tmp_path), "--once"]) == 1
        connect.assert_awaited_once_with("redis://localhost:6379")

    @pytest.mark.asyncio
    async def test_missing_token_exits_nonzero(self, tmp_path):
        config = write_config(
            tmp_path, remo={"token_file": str(tmp_path / "missing.txt")}
        )
        assert await async_main(["-c", config, "--once", "--dry-run"]) == 1

    @pytest.mark.asyncio
    async def test_zero_interval_exits_nonzero(self, tmp_path):
        config = write_config(tmp_path, co2={"ip": "192.168.0.116", "interval": 0})
        assert await async_main(["-c", config, "--once", "--dry-run"]) == 1
