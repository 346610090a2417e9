"""
Agent implementations for FeedbackLens.

Contains the modules that move feedback through the pipeline:
- Ingestion Agent
- Classifier Gateway
- Response Normalizer
- Feedback Analyzer (classify + normalize)
- Summary Aggregator
- Digest Formatters
"""
