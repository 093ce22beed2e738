"""
Application Package

Orchestration of policy evaluation runs.
"""
