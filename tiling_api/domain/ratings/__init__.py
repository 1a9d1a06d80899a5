"""Ratings domain - one post-completion rating per booking"""
