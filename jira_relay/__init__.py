"""Jira relay: Atlassian OAuth 2.0 (3LO) handshake and Jira REST passthrough."""
