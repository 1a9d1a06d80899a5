"""Notifications domain - one admin notification per booking"""
