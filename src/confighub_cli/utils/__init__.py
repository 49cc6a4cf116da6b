# ABOUTME: Utilities package initialization for the ConfigHub CLI
# ABOUTME: Contains the API client, awaiting engine, and logging helpers

"""
ConfigHub CLI Utilities Package

Shared utilities:
    - client.py: ConfigHub API client with retry logic and typed entities
    - waiting.py: Polling engine that awaits trigger and operation completion
    - logging.py: Structured logging with correlation IDs and audit trail
"""
