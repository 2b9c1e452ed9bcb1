"""
Tests for the file price adapter.
Uses temp files only - no network, no fixtures outside the test.
"""

import json
import pytest
import pandas as pd

from ingestion.providers.file_adapter import read_price_rows, rows_from_frame, PriceSourceError


class TestReadPriceRows:
    """Tests for read_price_rows function."""

    def test_csv(self, tmp_path):
        path = tmp_path / 'prices.csv'
        path.write_text(
            "UNIQUE_CARRIER_NAME,Date,Adj Close\n"
            "Delta Air Lines Inc.,2024-01-02,40.5\n"
            "Delta Air Lines Inc.,2024-01-03,\n"
        )
        rows = read_price_rows(path)

        assert len(rows) == 2
        assert rows[0]['UNIQUE_CARRIER_NAME'] == 'Delta Air Lines Inc.'
        assert rows[0]['Date'] == '2024-01-02'
        assert rows[0]['Adj Close'] == 40.5
        assert pd.isna(rows[1]['Adj Close'])

    def test_json_list(self, tmp_path):
        path = tmp_path / 'prices.json'
        documents = [
            {'entityKey': 'Delta', 'date': {'$date': '2024-01-02T00:00:00Z'},
             'adjustedClose': {'$numberDouble': '40.5'}},
        ]
        path.write_text(json.dumps(documents))

        assert read_price_rows(path) == documents

    def test_json_data_wrapper(self, tmp_path):
        path = tmp_path / 'prices.json'
        path.write_text(json.dumps({'data': [{'entity_key': 'Delta'}]}))

        assert read_price_rows(path) == [{'entity_key': 'Delta'}]

    def test_json_not_a_list(self, tmp_path):
        path = tmp_path / 'prices.json'
        path.write_text(json.dumps({'entity_key': 'Delta'}))

        with pytest.raises(PriceSourceError, match="Expected a list"):
            read_price_rows(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / 'prices.json'
        path.write_text('[{"entity_key": ')

        with pytest.raises(PriceSourceError, match="Failed to read"):
            read_price_rows(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(PriceSourceError, match="not found"):
            read_price_rows(tmp_path / 'missing.csv')

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / 'prices.xlsx'
        path.write_text('')

        with pytest.raises(PriceSourceError, match="Unsupported"):
            read_price_rows(path)


class TestRowsFromFrame:
    """Tests for rows_from_frame function."""

    def test_date_index_becomes_column(self):
        """Market-data frames index by date."""
        frame = pd.DataFrame(
            {'Adj Close': [40.0, 41.0]},
            index=pd.DatetimeIndex(['2024-01-02', '2024-01-03'])
        )
        rows = rows_from_frame(frame)

        assert rows[0]['Date'] == pd.Timestamp('2024-01-02')
        assert rows[1]['Adj Close'] == 41.0

    def test_empty_frame(self):
        assert rows_from_frame(pd.DataFrame()) == []
