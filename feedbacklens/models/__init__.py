"""
Data models for FeedbackLens.
"""
