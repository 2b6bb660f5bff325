"""Shared helpers: API client and response envelope"""
