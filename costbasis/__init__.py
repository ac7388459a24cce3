# coding: utf-8
"""
Position & P&L reconciliation for a portfolio transaction ledger.
"""
from .config import CONFIG
