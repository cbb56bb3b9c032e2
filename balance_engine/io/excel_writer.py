# -*- coding: utf-8 -*-
"""
Excel 导出工具

将对账结果导出为格式化的 Excel 文件，方便人类阅读
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

logger = logging.getLogger(__name__)

NUMBER_FORMAT = "#,##0.00"

ASSET_ROWS = [
    ("fixed_assets_value", "固定资产"),
    ("inventory_value", "存货"),
    ("total_cash_usd", "现金 (USD)"),
    ("net_bank_usd", "银行"),
    ("net_card_usd", "刷卡"),
    ("accounts_receivable", "应收账款"),
]

PASSIVE_ROWS = [
    ("equity", "股本"),
    ("fixed_assets_fund", "固定资产基金"),
    ("retained_earnings", "留存收益"),
    ("vat_liability", "应交增值税"),
    ("accounts_payable", "应付账款"),
    ("fixed_assets_payable", "固定资产应付款"),
]

CASH_ROWS = [
    ("cash_usd", "现金 USD"),
    ("cash_local", "现金 本币"),
    ("bank_local", "银行 本币"),
    ("card_local", "刷卡 本币"),
]

PNL_ROWS = [
    ("revenue", "收入"),
    ("cogs", "销售成本"),
    ("gross_profit", "毛利"),
    ("total_expenses", "费用合计"),
    ("total_depreciation", "累计折旧"),
    ("net_profit", "净利润"),
]


class ExcelWriter:
    """
    Excel 导出工具

    使用方法:
        writer = ExcelWriter()
        writer.write_reconciliation(result.to_dict())
        writer.save("balance.xlsx")
    """

    def __init__(self):
        self.wb = Workbook()
        # 删除默认的 sheet
        self.wb.remove(self.wb.active)

        # 样式定义
        self.title_font = Font(bold=True, size=14)
        self.header_font = Font(bold=True, size=11)
        self.header_fill = PatternFill(start_color="DAEEF3", end_color="DAEEF3", fill_type="solid")
        self.thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def _set_column_width(self, ws, col, width):
        ws.column_dimensions[get_column_letter(col)].width = width

    def _write_title(self, ws, row, title):
        cell = ws.cell(row=row, column=1, value=title)
        cell.font = self.title_font
        return row + 1

    def _write_header_row(self, ws, row, headers: Sequence[str], start_col=1):
        for i, header in enumerate(headers):
            cell = ws.cell(row=row, column=start_col + i, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.border = self.thin_border
            cell.alignment = Alignment(horizontal='center')
        return row + 1

    def _write_data_row(self, ws, row, data: Sequence[Any], start_col=1, is_total=False):
        for i, value in enumerate(data):
            cell = ws.cell(row=row, column=start_col + i, value=value)
            cell.border = self.thin_border
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                cell.number_format = NUMBER_FORMAT
                cell.alignment = Alignment(horizontal='right')
            else:
                cell.alignment = Alignment(horizontal='left')
            if is_total:
                cell.font = Font(bold=True)
        return row + 1

    def _write_section(self, ws, row, title, rows, values: Dict[str, Any], totals=()):
        row = self._write_title(ws, row, title)
        row = self._write_header_row(ws, row, ["科目", "金额"])
        for key, label in rows:
            row = self._write_data_row(ws, row, [label, values.get(key, 0.0)], is_total=key in totals)
        return row + 1

    def write_balance_sheet(self, balance: Dict[str, Any], sheet_name: str = "资产负债表"):
        """
        写入资产负债表

        Args:
            balance: BalanceSheet.to_dict() 的结果
            sheet_name: 工作表名称
        """
        ws = self.wb.create_sheet(title=sheet_name)
        self._set_column_width(ws, 1, 24)
        self._set_column_width(ws, 2, 18)

        row = 1
        row = self._write_title(ws, row, f"资产负债表 (汇率 {balance.get('exchange_rate', 0):,.2f})")
        row += 1

        row = self._write_section(ws, row, "资产", ASSET_ROWS + [("total_assets", "资产合计")],
                                  balance, totals=("total_assets",))
        row = self._write_section(ws, row, "负债与权益", PASSIVE_ROWS + [("total_passives", "负债与权益合计")],
                                  balance, totals=("total_passives",))
        row = self._write_section(ws, row, "资金", CASH_ROWS, balance)

        inventory = balance.get("inventory_by_warehouse", {})
        if inventory:
            row = self._write_section(ws, row, "存货（按仓库）",
                                      [(name, name) for name in sorted(inventory)], inventory)

        pnl = balance.get("profit_and_loss", {})
        if pnl:
            row = self._write_section(ws, row, "损益摘要", PNL_ROWS, pnl,
                                      totals=("gross_profit", "net_profit"))

        row = self._write_title(ws, row, "配平检验")
        status = "✓ 配平" if balance.get("is_balanced") else "✗ 不配平"
        self._write_data_row(ws, row, ["状态", status, f"差额: {balance.get('balance_diff', 0):.6f}"])

    def write_corrections(self, corrections: List[Dict[str, Any]], sheet_name: str = "修正记录"):
        """写入异常金额修正记录"""
        ws = self.wb.create_sheet(title=sheet_name)
        for col, width in enumerate([16, 14, 18, 18, 18, 40], start=1):
            self._set_column_width(ws, col, width)

        row = self._write_header_row(ws, 1, ["ID", "类型", "字段", "原始金额", "修正金额", "原因"])
        for c in corrections:
            row = self._write_data_row(ws, row, [
                c["id"], c["type"], c["field"], c["originalAmount"], c["correctedAmount"], c["reason"],
            ])

    def write_debts(self, debts: Dict[str, List[Dict[str, Any]]], sheet_name: str = "往来余额"):
        """写入客户与供应商重算欠款"""
        ws = self.wb.create_sheet(title=sheet_name)
        for col, width in enumerate([16, 24, 10, 16, 16, 8], start=1):
            self._set_column_width(ws, col, width)

        row = self._write_header_row(ws, 1, ["ID", "名称", "角色", "重算欠款", "存储欠款", "变动"])
        for role in ("clients", "suppliers"):
            for d in debts.get(role, []):
                row = self._write_data_row(ws, row, [
                    d["counterparty_id"], d["name"], d["role"], d["total_debt"], d["stored_debt"],
                    "是" if d["changed"] else "",
                ])

    def write_reconciliation(self, result: Dict[str, Any]):
        """
        写入完整对账结果（三个工作表）

        Args:
            result: ReconciliationResult.to_dict() 的结果
        """
        self.write_balance_sheet(result["balance"])
        self.write_corrections(result.get("corrections", []))
        self.write_debts(result.get("debts", {}))

    def save(self, filepath: str):
        """
        保存 Excel 文件

        Args:
            filepath: 文件路径
        """
        path = Path(filepath)
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(str(path))
        logger.info("Excel saved: %s", path)
        return str(path)
