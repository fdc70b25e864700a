from preparea.parsers.collection_export import export_collection_csv
from preparea.parsers.collection_import import parse_collection_csv, sanitize_count
from preparea.parsers.csv_table import CsvHeader, parse_csv_rows, split_header
from preparea.parsers.trade_csv import export_trade_csv, parse_partner_count, parse_trade_csv

__all__ = [
    "CsvHeader",
    "export_collection_csv",
    "export_trade_csv",
    "parse_collection_csv",
    "parse_csv_rows",
    "parse_partner_count",
    "parse_trade_csv",
    "sanitize_count",
    "split_header",
]
