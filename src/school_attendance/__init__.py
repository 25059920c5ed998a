"""School attendance service.

Feature modules (attendance, students, users, notifications) each keep a thin
Flask controller on top of service and repository layers.
"""
