# -*- coding: utf-8 -*-
"""
输入输出模块

提供 Excel 导出等功能
"""

from .excel_writer import ExcelWriter

__all__ = ['ExcelWriter']
