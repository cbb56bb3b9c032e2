from .calc import add_parser as add_calc_parser
from .debts import add_parser as add_debts_parser
from .report import add_parser as add_report_parser
from .client import add_parser as add_client_parser
from .export import add_parser as add_export_parser

__all__ = [
    "add_calc_parser",
    "add_debts_parser",
    "add_report_parser",
    "add_client_parser",
    "add_export_parser",
]
