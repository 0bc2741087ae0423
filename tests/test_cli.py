"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from src import cli
from src.catalog.client import CatalogClient
from src.catalog.outcomes import FetchOutcome
from tests.fakes import food, search_response, transient


class TestRun:

    def test_search_prints_summaries(self, client, transport, capsys):
        transport.search_replies.append(search_response(
            food(1, "Broccoli, raw", foodNutrients=[{"nutrientId": 1162, "value": 89.2}])
        ))
        args = cli.build_parser().parse_args(["search", "broccoli", "--data-type", "Branded", "--page-size", "5"])

        code = cli.run(args, client)

        out = json.loads(capsys.readouterr().out)
        assert code == cli.EXIT_OK
        assert out[0]["fdcId"] == 1
        assert out[0]["nutrientCount"] == 1
        assert transport.calls[0][1]["dataType"] == ["Branded"]
        assert transport.calls[0][1]["pageSize"] == 5

    def test_detail_scales_nutrients(self, client, transport, capsys):
        transport.detail_replies.append(FetchOutcome.success(
            food(7, foodNutrients=[{"nutrient": {"id": 1089}, "amount": 2.0}])
        ))
        args = cli.build_parser().parse_args(["detail", "7", "--serving-grams", "50"])

        code = cli.run(args, client)

        out = json.loads(capsys.readouterr().out)
        assert code == cli.EXIT_OK
        assert out["nutrients"] == {"iron": 1.0}
        assert out["servingGrams"] == 50

    def test_detail_not_found_exit_code(self, client, capsys):
        args = cli.build_parser().parse_args(["detail", "404404"])

        assert cli.run(args, client) == cli.EXIT_NOT_FOUND
        assert json.loads(capsys.readouterr().out) is None

    def test_batch(self, client, transport, capsys):
        transport.batch_replies.append(FetchOutcome.success([food(1), food(2)]))
        args = cli.build_parser().parse_args(["batch", "1", "2"])

        assert cli.run(args, client) == cli.EXIT_OK
        assert [f["fdcId"] for f in json.loads(capsys.readouterr().out)] == [1, 2]

    def test_empty_search_when_provider_down(self, client, transport, capsys):
        transport.search_replies.append(transient())
        args = cli.build_parser().parse_args(["search", "broccoli"])

        assert cli.run(args, client) == cli.EXIT_NOT_FOUND


class TestMain:

    def test_missing_api_key_is_config_error(self, monkeypatch, capsys):
        monkeypatch.delenv("USDA_API_KEY", raising=False)

        assert cli.main(["search", "apple"]) == cli.EXIT_CONFIG_ERROR
        assert "USDA_API_KEY" in capsys.readouterr().err

    def test_missing_config_file_is_config_error(self, tmp_path):
        assert cli.main(["--config", str(tmp_path / "nope.yaml"), "search", "apple"]) == cli.EXIT_CONFIG_ERROR

    def test_invalid_page_size_is_reported(self, monkeypatch, capsys):
        monkeypatch.setenv("USDA_API_KEY", "KEY")

        assert cli.main(["search", "apple", "--page-size", "0"]) == cli.EXIT_CONFIG_ERROR
        assert "page_size" in capsys.readouterr().err

    def test_main_wires_client_from_env(self, monkeypatch):
        monkeypatch.setenv("USDA_API_KEY", "KEY")

        with patch.object(cli, "run", return_value=cli.EXIT_OK) as run:
            assert cli.main(["batch", "1"]) == cli.EXIT_OK

        args, client = run.call_args[0]
        assert isinstance(client, CatalogClient)
        assert client.config.api_key == "KEY"
        assert args.fdc_ids == [1]

    def test_requires_subcommand(self):
        with pytest.raises(SystemExit):
            cli.main([])
