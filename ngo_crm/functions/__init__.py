"""Serverless functions served alongside the app"""
