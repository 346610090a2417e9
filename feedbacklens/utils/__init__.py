"""
Utility modules for FeedbackLens.

Cross-cutting concerns:
- Storage: Feedback/analysis persistence and aggregation queries
- Transport: Slack webhook and email delivery
"""
