"""Debate domain services: lifecycle, settlement, ranking and streaks.

This package holds the scoring engine behind the daily question. HTTP
routes, socket handlers and the rollover CLI import from here, keeping
transport concerns separated from the settlement rules.
"""
