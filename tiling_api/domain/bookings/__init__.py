"""Bookings domain - booking lifecycle, references and post-commit events"""
