"""
Business layer for the vaccination center system.
Contains the stock ledger, the movement journal, admission control and the
appointment lifecycle, separated from data persistence concerns.
"""
