"""
Tests for the pipeline runner CLI.
"""

import json
import pytest
from pathlib import Path

from pipeline.run import main, build_parser, _format_return


FIXTURES = Path(__file__).resolve().parents[2] / 'tests' / 'fixtures'
PRICES_CSV = str(FIXTURES / 'airline_prices.csv')
CATALOG_YML = str(FIXTURES / 'catalog.yml')


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('KPI_PRICES_PATH', 'KPI_CATALOG_PATH', 'KPI_OUTPUT_PATH', 'KPI_WORKERS'):
        monkeypatch.delenv(name, raising=False)


class TestKPIsCommand:
    """Tests for the kpis subcommand."""

    def test_quiet_run(self, tmp_path, capsys):
        output = tmp_path / 'kpis.json'
        code = main(['--catalog', CATALOG_YML, '--quiet',
                     'kpis', PRICES_CSV, '--output', str(output)])

        assert code == 0
        assert '1 KPI records written' in capsys.readouterr().out
        assert output.exists()

    def test_full_display(self, tmp_path, capsys):
        code = main(['--catalog', CATALOG_YML,
                     'kpis', PRICES_CSV, '--output', str(tmp_path / 'kpis.json')])
        out = capsys.readouterr().out

        assert code == 0
        assert 'DAL' in out
        assert '+20.00%' in out
        assert 'Rows dropped: 1' in out

    def test_prices_from_env(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv('KPI_PRICES_PATH', PRICES_CSV)
        monkeypatch.setenv('KPI_OUTPUT_PATH', str(tmp_path / 'env.json'))

        code = main(['--catalog', CATALOG_YML, '--quiet', 'kpis'])

        assert code == 0
        assert (tmp_path / 'env.json').exists()

    def test_missing_prices(self, capsys):
        code = main(['--catalog', CATALOG_YML, 'kpis'])

        assert code == 1
        assert 'prices_path' in capsys.readouterr().err

    def test_pipeline_failure(self, tmp_path, capsys):
        code = main(['--catalog', CATALOG_YML, '--quiet',
                     'kpis', str(tmp_path / 'missing.csv'), '--output', str(tmp_path / 'o.json')])

        assert code == 1
        assert 'Pipeline failed' in capsys.readouterr().err

    def test_invalid_sort_field(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['kpis', PRICES_CSV, '--sort-by', 'latest_price'])


class TestHistoryCommand:
    """Tests for the history subcommand."""

    def test_history(self, capsys):
        code = main(['--catalog', CATALOG_YML, 'history', PRICES_CSV, 'delta-airlines'])
        rows = json.loads(capsys.readouterr().out)

        assert code == 0
        assert rows[0] == {'date': '2019-01-02', 'adjusted_close': 30.0}
        assert [row['date'] for row in rows] == sorted(row['date'] for row in rows)

    def test_unknown_entity(self, capsys):
        code = main(['--catalog', CATALOG_YML, 'history', PRICES_CSV, 'pan-am'])

        assert code == 1
        assert 'Unknown entity' in capsys.readouterr().err


class TestFormatReturn:
    """Tests for _format_return helper."""

    def test_formats(self):
        assert _format_return(20.0) == '+20.00%'
        assert _format_return(-5.5) == '-5.50%'
        assert _format_return('N/A') == 'N/A'
