"""pdf study assistant: ai-powered summaries, topic index and study roadmap for pdf documents"""

__version__ = "1.0.0"
