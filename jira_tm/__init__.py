"""
Jira Test Management publisher.

Pushes build test results to Jira issues (status, attachments, comments),
manages labels and purges expired result comments.
"""

__version__ = "1.0.0"
