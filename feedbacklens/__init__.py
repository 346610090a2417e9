"""
FeedbackLens - user feedback analysis and aggregation.
"""
