"""Course Attendance package.

This package is organized by feature modules (statuses, sessions, importer,
attendance, grades, ...) with a thin Flask controller layer and service/repository
layers underneath.
"""
