"""
Test suite for the task tracker.

- unit/: tokens, auth gate helpers, schemas, models, stats, client
- integration/: user and task endpoints through the Flask test client
- security/: authentication gate, tenant isolation, mass assignment
"""
