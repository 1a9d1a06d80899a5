"""Availability domain - the ledger of blocked calendar dates"""
