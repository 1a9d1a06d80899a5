"""Accounts domain - Google sign-in exchange and session tokens"""
