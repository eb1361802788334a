"""
Jira Test Management publisher - Test Suite Package.

Unit tests run against a mocked requests.Session; no Jira instance is needed.
"""
