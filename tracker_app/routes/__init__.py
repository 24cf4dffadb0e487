"""
Route blueprints for the task tracker API.

- users: registration, login and profile endpoints
- tasks: owner-scoped task CRUD and the health check
"""
