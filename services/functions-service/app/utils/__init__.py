"""Supabase access, dependencies and compensation helpers"""
