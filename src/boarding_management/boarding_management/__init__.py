"""Boarding Management package.

This package is organized by feature modules (students, duty, reports,
permissions, ...) with a thin Flask controller layer on top of service and
repository layers.
"""
